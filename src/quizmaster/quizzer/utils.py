import json

from pathlib import Path
from typing import Iterator, Sequence, Tuple


def iter_jsonl(path: Path) -> Iterator[Tuple[int, object]]:
    """Yield ``(line_number, decoded)`` for each non-blank line of ``path``.

    Lines that are not valid UTF-8 or not valid JSON are yielded as
    ``(line_number, None)`` so callers can decide whether to skip or fail.
    """
    with Path(path).open("rb") as fh:
        for lineno, raw in enumerate(fh, start=1):
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError:
                yield lineno, None
                continue
            if not line:
                continue
            try:
                yield lineno, json.loads(line)
            except json.JSONDecodeError:
                yield lineno, None


def append_jsonl(path: Path, records: Sequence[dict]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a", encoding="utf-8") as fh:
        for rec in records:
            fh.write(json.dumps(rec, ensure_ascii=False))
            fh.write("\n")
