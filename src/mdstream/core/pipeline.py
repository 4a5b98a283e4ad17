"""Pipeline step functions: file discovery, render, and simulated streaming"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from mdstream.config import Settings
from mdstream.core.parser import BlockParser
from mdstream.core.models import ParseResult
from mdstream.util.logging import get_logger


MD_EXTENSIONS = {'.md', '.mdx', '.markdown'}

logger = get_logger(__name__)


@dataclass
class StreamReport:
    """Summary of replaying one document through the incremental parser."""
    path:               Path
    updates:            int = 0
    incomplete_updates: int = 0
    cache_hits:         int = 0
    block_counts:       list[int] = field(default_factory=list)   # blocks after each update
    matches_full_parse: bool = True
    final:              ParseResult = field(default_factory=ParseResult)

    @property
    def hit_rate(self) -> float:
        return self.cache_hits / self.updates if self.updates else 0.0


def discover_files(path: Path) -> list[Path]:
    """Return sorted markdown files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.suffix in MD_EXTENSIONS)


def iter_chunks(text: str, size: int) -> Iterator[str]:
    for i in range(0, len(text), size):
        yield text[i:i + size]


def stream_text(parser: BlockParser, text: str, chunk_size: int) -> Iterator[ParseResult]:
    """Feed text to the parser chunk by chunk, yielding the result after each chunk."""
    previous = ""
    for chunk in iter_chunks(text, chunk_size):
        current = previous + chunk
        yield parser.parse_incremental(previous, current)
        previous = current


def run_render(path: str, settings: Settings, output_dir: Path) -> list[tuple[Path, Path]]:
    """Full-parse each file and write <stem>.blocks.json. Returns (source_path, output_file) pairs."""
    files = discover_files(Path(path))
    if not files:
        raise RuntimeError(f"No markdown files found at {path}")
    output_dir.mkdir(parents=True, exist_ok=True)
    parser = BlockParser(settings)
    results = []
    for p in files:
        try:
            result = parser.parse(p.read_text(encoding='utf-8'))
            out_file = output_dir / f"{p.stem}.blocks.json"
            out_file.write_text(result.model_dump_json(indent=2))
            results.append((p, out_file))
        except OSError as e:
            raise RuntimeError(f"Failed to render {p}: {e}") from e
    return results


def run_stream(path: str, settings: Settings) -> list[StreamReport]:
    """Replay each file in chunks and compare the final result to a full parse."""
    files = discover_files(Path(path))
    if not files:
        raise RuntimeError(f"No markdown files found at {path}")
    reports = []
    for p in files:
        try:
            text = p.read_text(encoding='utf-8')
        except OSError as e:
            raise RuntimeError(f"Failed to read {p}: {e}") from e
        parser = BlockParser(settings)
        report = StreamReport(path=p)
        for result in stream_text(parser, text, settings.chunk_size):
            report.updates += 1
            report.block_counts.append(len(result.blocks))
            report.incomplete_updates += result.has_incomplete_block
            report.final = result
        report.cache_hits = parser.stats.cache_hits
        report.matches_full_parse = report.final.blocks == BlockParser(settings).parse(text).blocks
        if not report.matches_full_parse:
            logger.warning("Incremental result for %s differs from a full parse", p)
        reports.append(report)
    return reports
