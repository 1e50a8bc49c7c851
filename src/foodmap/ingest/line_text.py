"""Line-text parser: blank-line separated name / url / coordinates blocks."""

from __future__ import annotations

import warnings

from foodmap.ingest.base import BaseParser, ParseError
from foodmap.ingest.coordinates import parse_coordinates
from foodmap.models import Restaurant

_MAX_BLOCK_LINES = 3


class LineTextParser(BaseParser):
    """Parse the hand-maintained text list::

        Pizza Union
        https://maps.app.goo.gl/E6s3Tma5Y9ii5Wpu5
        51.5145,-0.0742

        Bari Bari (Korean)
        https://maps.app.goo.gl/g9dsuQ2AnZguY1jF7

    Records are split on blank lines rather than on a fixed line stride, so a
    record without a coordinate line does not shift every record after it.
    A block longer than three lines means a separator is missing: a
    ``UserWarning`` is emitted and the extra lines are ignored (strict mode
    raises ``ParseError``).
    """

    def parse(self, content: str) -> list[Restaurant]:
        self.skipped = []
        records: list[Restaurant] = []

        for start, block in _blocks(content):
            if len(block) > _MAX_BLOCK_LINES:
                msg = (
                    f"line {start}: block has {len(block)} lines, expected at most "
                    f"{_MAX_BLOCK_LINES} (missing blank line between records?)"
                )
                if self.strict:
                    raise ParseError(msg)
                warnings.warn(msg, UserWarning, stacklevel=2)

            name = block[0]
            url = block[1] if len(block) > 1 else ""
            coords = parse_coordinates(block[2]) if len(block) > 2 else None

            record = self._make_record(start, name, url, coordinates=coords)
            if record is not None:
                records.append(record)

        return records


def _blocks(content: str) -> list[tuple[int, list[str]]]:
    """Group stripped non-blank lines into (first line number, lines) blocks."""
    blocks: list[tuple[int, list[str]]] = []
    current: list[str] = []
    start = 0

    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line:
            if current:
                blocks.append((start, current))
                current = []
            continue
        if not current:
            start = lineno
        current.append(line)

    if current:
        blocks.append((start, current))
    return blocks
