"""RoadData CLI - Command Line Interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from roaddata.data.sources import CsvConfig, csv_dataset
from roaddata.errors import DatasetError
from roaddata.pipeline.pipeline import Pipeline, PipelineConfig

logger = logging.getLogger(__name__)


class CLI:
    """RoadData CLI.

    Commands:
    - schema: Print the inferred schema of a delimited-text file
    - head: Print the first elements of a pipeline over a file
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="roaddata",
            description="RoadData - Lazy dataset pipelines",
        )
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
        self._setup_parsers()

    @staticmethod
    def _add_reader_args(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("file", help="Delimited-text file")
        parser.add_argument("--delimiter", type=str, default=",", help="Field delimiter")
        parser.add_argument("--no-header", action="store_true", help="File has no header row")
        parser.add_argument("--skip", type=int, default=0, help="Leading rows to ignore")

    def _setup_parsers(self):
        """Setup command parsers."""
        subparsers = self.parser.add_subparsers(dest="command", help="Commands")

        schema_parser = subparsers.add_parser("schema", help="Show inferred schema")
        self._add_reader_args(schema_parser)

        head_parser = subparsers.add_parser("head", help="Show first elements")
        self._add_reader_args(head_parser)
        head_parser.add_argument("-n", "--count", type=int, default=5, help="Elements to print")
        head_parser.add_argument("--batch-size", type=int, help="Batch size")
        head_parser.add_argument("--shuffle", type=int, help="Shuffle buffer size")
        head_parser.add_argument("--seed", type=int, help="Shuffle seed")
        head_parser.add_argument("--config", type=str, help="Pipeline config JSON file")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run CLI command."""
        parsed = self.parser.parse_args(args)

        if parsed.verbose:
            logging.getLogger("roaddata").setLevel(logging.DEBUG)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            if parsed.command == "schema":
                return self._handle_schema(parsed)
            elif parsed.command == "head":
                return self._handle_head(parsed)
            else:
                self.parser.print_help()
                return 1
        except (DatasetError, OSError, ValueError, TypeError) as e:
            logger.error(f"Error: {e}")
            return 1

    @staticmethod
    def _reader_config(args) -> CsvConfig:
        return CsvConfig(
            delimiter=args.delimiter,
            header=not args.no_header,
            skip=args.skip,
        )

    def _handle_schema(self, args) -> int:
        dataset = csv_dataset(args.file, config=self._reader_config(args))
        for column in dataset.schema:
            print(f"{column.name}\t{column.dtype.value}")
        return 0

    def _handle_head(self, args) -> int:
        if args.config:
            data = json.loads(Path(args.config).read_text())
            config = PipelineConfig.from_dict(data)
        else:
            config = PipelineConfig(batch_size=None)

        overrides = {}
        if args.batch_size is not None:
            overrides["batch_size"] = args.batch_size
        if args.shuffle is not None:
            overrides["shuffle_buffer"] = args.shuffle
        if args.seed is not None:
            overrides["seed"] = args.seed
        if overrides:
            config = PipelineConfig.from_dict({**config.to_dict(), **overrides})

        source = csv_dataset(args.file, config=self._reader_config(args))
        dataset = Pipeline.from_config(config).take(args.count).build(source)

        for element in dataset:
            print(json.dumps(element))
        return 0


def main():
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO)
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
