"""
End-to-end generation pipeline.

headers -> parse -> model -> render (in memory) -> atomic commit
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import GeneratorConfig
from .generators import GeneratedFile, MetadataGenerator, OutputWriter, RustBindingGenerator
from .model.builder import ModelBuilder
from .model.metadata import Model
from .parser import HeaderParser, ParsedHeader

logger = logging.getLogger("sdlgen")


@dataclass
class PipelineResult:
    """Everything one run produced."""

    headers: list[ParsedHeader] = field(default_factory=list)
    model: Optional[Model] = None
    trees: dict[Path, list[GeneratedFile]] = field(default_factory=dict)
    written: list[Path] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return sum(len(files) for files in self.trees.values())


class Pipeline:
    """
    Run the generator over a header directory.

    Either every output file is written or none is: any error raised by a
    stage propagates before the writer touches the destinations.
    """

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self.parser = HeaderParser(config)
        self.builder = ModelBuilder(config)

    def parse(self, header_paths: Optional[list[Path]] = None) -> list[ParsedHeader]:
        if header_paths is None:
            header_paths = self.parser.find_headers()
        headers = self.parser.parse_headers(header_paths)
        logger.info(f"Parsed {len(headers)} headers")
        return headers

    def build_model(self, headers: list[ParsedHeader]) -> Model:
        return self.builder.build(headers)

    def render(self, headers: list[ParsedHeader], model: Model) -> dict[Path, list[GeneratedFile]]:
        """Render all output trees in memory, keyed by destination directory."""
        bindings = RustBindingGenerator(self.config)
        trees = {bindings.get_output_dir(): bindings.generate(headers)}
        if self.config.generation.metadata:
            metadata = MetadataGenerator(self.config)
            trees[metadata.get_output_dir()] = metadata.generate(model)
        return trees

    def run(self, header_paths: Optional[list[Path]] = None, write: bool = True) -> PipelineResult:
        """
        Run every stage.

        Args:
            header_paths: Headers to process (default: discovered in headers_dir)
            write: Commit the output to disk

        Returns:
            PipelineResult

        Raises:
            SdlGenError: If any stage fails (nothing is written)
        """
        result = PipelineResult()
        result.headers = self.parse(header_paths)
        result.model = self.build_model(result.headers)
        result.trees = self.render(result.headers, result.model)

        model = result.model
        logger.info(
            f"Model: {len(model.groups)} groups, {len(model.hints)} hints, "
            f"{len(model.properties)} properties"
        )

        if write:
            result.written = OutputWriter().commit(result.trees)
            for dest in sorted(result.trees, key=lambda p: p.as_posix()):
                logger.info(f"Wrote {len(result.trees[dest])} files to {dest}")
        return result
