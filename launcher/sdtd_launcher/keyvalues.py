"""
keyvalues.py — parser for Valve's text KeyValues format
--------------------------------------------------------
Used for SteamCMD app manifests (``appmanifest_<id>.acf``) and for the output
of ``+app_info_print``. Example::

    "AppState"
    {
        "appid"     "294420"
        "buildid"   "20727232"
        "UserConfig"
        {
            "language"  "english"
        }
    }
"""

from __future__ import annotations
import re
from typing import Any, Dict, Iterator, Optional, Tuple

from .errors import KeyValuesError

_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}
_BARE_STOP = set(' \t\r\n{}"')

Token = Tuple[str, str]


def _tokenize(text: str) -> Iterator[Token]:
    i, n = 0, len(text)
    while i < n:
        c = text[i]
        if c.isspace():
            i += 1
        elif text.startswith("//", i):
            nl = text.find("\n", i)
            i = n if nl < 0 else nl + 1
        elif c in "{}":
            yield c, c
            i += 1
        elif c == '"':
            i += 1
            buf = []
            while True:
                if i >= n:
                    raise KeyValuesError("unterminated quoted string")
                c = text[i]
                if c == "\\" and i + 1 < n:
                    buf.append(_ESCAPES.get(text[i + 1], text[i + 1]))
                    i += 2
                elif c == '"':
                    i += 1
                    break
                else:
                    buf.append(c)
                    i += 1
            yield "str", "".join(buf)
        else:
            start = i
            while i < n and text[i] not in _BARE_STOP:
                i += 1
            word = text[start:i]
            # platform conditionals like [$WIN32] carry no data for us
            if not (word.startswith("[") and word.endswith("]")):
                yield "str", word


def _parse_block(tokens: Iterator[Token], nested: bool) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    while True:
        tok = next(tokens, None)
        if tok is None:
            if nested:
                raise KeyValuesError("unexpected end of input, missing '}'")
            return result
        kind, key = tok
        if kind == "}":
            if not nested:
                raise KeyValuesError("unexpected '}'")
            return result
        if kind == "{":
            raise KeyValuesError("block without a key")

        tok = next(tokens, None)
        if tok is None or tok[0] == "}":
            raise KeyValuesError(f"missing value for key {key!r}")
        result[key] = _parse_block(tokens, True) if tok[0] == "{" else tok[1]


def loads(text: str) -> Dict[str, Any]:
    return _parse_block(_tokenize(text), nested=False)


def find_block(text: str, key: str) -> Optional[Dict[str, Any]]:
    """
    Locate the block ``"key" { ... }`` inside noisy tool output and parse only
    that block. Returns None when the key line is not present.
    """
    m = re.search(r'^[ \t]*"%s"[ \t]*\r?$' % re.escape(key), text, re.MULTILINE)
    if not m:
        return None
    tokens = _tokenize(text[m.end():])
    tok = next(tokens, None)
    if tok is None or tok[0] != "{":
        raise KeyValuesError(f"expected '{{' after {key!r}")
    return _parse_block(tokens, nested=True)


def get_path(data: Dict[str, Any], *keys: str) -> Optional[Any]:
    """Case-insensitive nested lookup, KeyValues keys are not case sensitive."""
    cur: Any = data
    for key in keys:
        if not isinstance(cur, dict):
            return None
        if key in cur:
            cur = cur[key]
            continue
        lowered = key.lower()
        for k, v in cur.items():
            if k.lower() == lowered:
                cur = v
                break
        else:
            return None
    return cur
