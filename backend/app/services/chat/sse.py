"""
Server-sent event helpers for the chat stream.

``SSEDecoder`` turns the upstream provider's event stream into content
deltas; ``format_event`` frames the service's own events.
"""

import codecs
import json
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_MARKER = "[DONE]"


class SSEDecoder:
    """
    Incremental decoder for an OpenAI-style completion event stream.

    Bytes are fed in arbitrary chunks. UTF-8 sequences and lines split across
    chunks are buffered until complete. Each complete ``data:`` line is
    parsed as JSON and its ``choices[0].delta.content`` is returned; the
    ``[DONE]`` payload sets ``done`` and everything after it is ignored.
    Lines that are not valid JSON are skipped.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.done = False

    def feed(self, chunk: bytes) -> List[str]:
        """Consume a chunk and return the content deltas it completed."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(chunk)
        return self._drain(final=False)

    def flush(self) -> List[str]:
        """Process whatever is left once the upstream stream has ended."""
        if self.done:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        return self._drain(final=True)

    def _drain(self, final: bool) -> List[str]:
        deltas = []
        lines = self._buffer.split("\n")
        # The last piece is an incomplete line unless the stream is over
        self._buffer = "" if final else lines.pop()

        for line in lines:
            delta = self._parse_line(line.rstrip("\r"))
            if self.done:
                self._buffer = ""
                break
            if delta:
                deltas.append(delta)
        return deltas

    def _parse_line(self, line: str) -> Optional[str]:
        if not line.startswith(DATA_PREFIX):
            return None

        payload = line[len(DATA_PREFIX):]
        if payload.startswith(" "):
            payload = payload[1:]

        if payload.strip() == DONE_MARKER:
            self.done = True
            return None

        try:
            parsed = json.loads(payload)
            content = parsed["choices"][0]["delta"].get("content")
        except (ValueError, KeyError, IndexError, TypeError, AttributeError):
            logger.debug(f"Skipping unparsable stream line: {line[:200]}")
            return None

        if isinstance(content, str) and content:
            return content
        return None


def format_event(payload: Dict[str, Any]) -> str:
    """Frame a payload as one SSE ``data:`` event."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
