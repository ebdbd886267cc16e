import base64, json, time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional
from .log_retention import SERVER_LOG_PATTERN

@dataclass
class LogChunk:
    entries: List[str]
    cursor: str
    truncated: bool

def _encode_cursor(pos: int, size: int) -> str:
    payload = {"pos": pos, "size": size}
    return base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")

def _decode_cursor(cursor: str) -> Optional[dict]:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return None

def server_logs(log_dir: Path) -> List[Path]:
    """Server output logs, newest first."""
    if not log_dir.is_dir():
        return []
    files = [p for p in log_dir.glob(SERVER_LOG_PATTERN) if p.is_file()]
    return sorted(files, key=lambda p: p.stat().st_mtime, reverse=True)

def latest_server_log(log_dir: Path) -> Optional[Path]:
    logs = server_logs(log_dir)
    return logs[0] if logs else None

def list_logs(log_dir: Path, update_log: Optional[Path] = None) -> list[dict]:
    paths = server_logs(log_dir)
    if update_log is not None and update_log.is_file():
        paths.append(update_log)
    out = []
    for p in paths:
        st = p.stat()
        out.append({
            "id": p.stem,  # output_log__2024-01-01__12-00-00, 7d2d-update
            "path": str(p),
            "size_bytes": st.st_size,
            "modified": int(st.st_mtime),
        })
    return out

def read_tail(path: Path, tail_lines: int = 200, max_bytes: int = 256_000) -> LogChunk:
    st = path.stat()
    size = st.st_size
    read_from = max(0, size - max_bytes)
    with path.open("rb") as f:
        f.seek(read_from)
        data = f.read()
    text = data.decode("utf-8", errors="replace")
    lines = text.splitlines()
    chunk = lines[-tail_lines:] if tail_lines > 0 else lines
    # cursor points to end of file
    return LogChunk(entries=chunk, cursor=_encode_cursor(size, size), truncated=(len(lines) > len(chunk)))

def read_from_cursor(path: Path, cursor: str, max_lines: int = 200, max_bytes: int = 256_000) -> LogChunk:
    st = path.stat()
    size = st.st_size
    decoded = _decode_cursor(cursor) or {"pos": 0, "size": 0}
    pos = int(decoded.get("pos", 0))

    # file shrank (server restarted with a fresh log): start over
    if pos > size:
        pos = 0

    with path.open("rb") as f:
        f.seek(pos)
        data = f.read(max_bytes)

    text = data.decode("utf-8", errors="replace")
    lines = text.splitlines()

    out_lines = lines[:max_lines]
    truncated = len(lines) > len(out_lines)

    if truncated:
        consumed = ("\n".join(out_lines) + "\n").encode("utf-8", errors="replace")
        next_pos = pos + len(consumed)
    else:
        next_pos = min(size, pos + len(data))

    return LogChunk(entries=out_lines, cursor=_encode_cursor(next_pos, size), truncated=truncated)

def follow(path: Path, tail_lines: int = 50, interval: float = 1.0) -> Iterator[str]:
    """tail -f: yields the last lines, then new ones as they are written."""
    chunk = read_tail(path, tail_lines=tail_lines)
    yield from chunk.entries
    cursor = chunk.cursor
    while True:
        chunk = read_from_cursor(path, cursor)
        cursor = chunk.cursor
        yield from chunk.entries
        if not chunk.truncated:
            time.sleep(interval)
