import argparse
import asyncio
from pathlib import Path

from photoupload.config.settings import Settings
from photoupload.imaging.resources import ResourceRegistry
from photoupload.logging.logger import Log
from photoupload.upload.controller import UploadInteractionController
from photoupload.upload.models import CandidateFile
from photoupload.upload.processor import build_processor


async def run_upload(path: Path, output: Path | None, settings: Settings) -> int:
    """Push one file through an upload area and optionally save the accepted bytes."""
    registry = ResourceRegistry()
    accepted: list[CandidateFile] = []

    def on_image_select(file: CandidateFile | None, preview: str | None) -> None:
        if file is not None:
            accepted.append(file)

    async def pick() -> list[CandidateFile]:
        return [CandidateFile.from_path(path)]

    controller = UploadInteractionController(
        build_processor(settings, registry),
        registry,
        on_image_select,
        pick,
        disabled=settings.upload_disabled,
    )
    try:
        await controller.activate()
        if not accepted:
            Log.error(f"Upload rejected: {controller.error or 'upload area is disabled'}")
            return 1
        final = accepted[-1]
        Log.info(f"Upload accepted: '{final.name}', {final.size} bytes")
        if output is not None:
            output.write_bytes(final.read_bytes())
            Log.info(f"Wrote {output}")
        return 0
    finally:
        controller.dispose()


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse args -> configure logging -> run one upload."""
    parser = argparse.ArgumentParser(description="Validate and compress a photo upload.")
    parser.add_argument("path", type=Path, help="image file to upload")
    parser.add_argument("--output", type=Path, default=None, help="where to write the result")
    args = parser.parse_args(argv)

    settings = Settings()
    Log.configure(settings.log_level)
    return asyncio.run(run_upload(args.path, args.output, settings))


if __name__ == "__main__":
    raise SystemExit(main())
