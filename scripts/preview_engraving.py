#!/usr/bin/env python
"""Script to render an engraving preview for a local image file."""
from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from app.config import get_settings
from app.errors import ConfigurationError
from app.prompts import LASER_ENGRAVING_PROMPT
from app.services.imagegen import build_provider
from app.utils.keys import extension_from_mime


async def _run(source: Path, output: Path | None) -> int:
    mime_type = mimetypes.guess_type(source.name)[0] or "image/png"
    try:
        provider = build_provider(get_settings())
    except ConfigurationError as exc:
        print(exc.error, file=sys.stderr)
        return 2
    response = await provider.generate(LASER_ENGRAVING_PROMPT, source.read_bytes(), mime_type)

    image = response.first_inline_image()
    if image is None:
        print("Model returned no image. Text response:", file=sys.stderr)
        print(response.text[:200], file=sys.stderr)
        return 1

    target = output or source.with_name(f"{source.stem}-engraved.{extension_from_mime(image.mime_type)}")
    target.write_bytes(image.to_bytes())
    print(f"Wrote {target} ({image.mime_type})")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Preview the laser engraving style for an image")
    parser.add_argument("--input", required=True, type=Path)
    parser.add_argument("--output", type=Path, default=None)
    args = parser.parse_args()
    sys.exit(asyncio.run(_run(args.input, args.output)))


if __name__ == "__main__":
    main()
