"""
Media processing wrappers around ffmpeg and ffprobe.

Two narrow interfaces are exposed to the upload pipeline:

- FastStartRemuxer.remux(path) -> path: rewrite an MP4 so the moov atom sits
  at the front of the file (progressive playback), copying streams without
  re-encoding.
- GeometryClassifier.classify(path) -> GeometryClass: probe the first video
  stream's width and height and bucket the aspect ratio.

Both run their tool with asyncio.create_subprocess_exec so the event loop is
free while the tool works. A non-zero exit, a missing executable or output we
cannot parse raises ProcessingError carrying the tool's stderr. No timeout or
retry is applied.
"""

import asyncio
import contextlib
import json
import logging

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from tubely.core.errors import ProcessingError


logger = logging.getLogger(__name__)

# Suffix appended to the input path to name the remuxed copy
PROCESSED_SUFFIX = ".processed"

# Reference aspect ratios and the absolute tolerance used to match them
LANDSCAPE_RATIO = 16 / 9
PORTRAIT_RATIO = 9 / 16
ASPECT_RATIO_TOLERANCE = 0.01


class GeometryClass(str, Enum):
    """Coarse orientation bucket; the value is the object key prefix."""

    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


@dataclass(frozen=True)
class VideoDimensions:
    """Pixel size of a video stream."""

    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: str
    stderr: str


async def run_tool(*cmd: str) -> ToolResult:
    """
    Run an external executable and collect its output.

    Raises:
        ProcessingError: If the executable cannot be started.
    """
    logger.debug("Running external tool", extra={"cmd": list(cmd)})
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessingError(f"Couldn't start {cmd[0]}: {e}") from e

    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        # Don't leave the tool writing into a file the caller is about to delete
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        raise

    return ToolResult(
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


def classify_dimensions(width: int, height: int) -> GeometryClass:
    """
    Bucket a width/height pair by aspect ratio.

    Encoders round pixel sizes, so the ratio is compared to 16:9 and 9:16
    with an absolute tolerance of 0.01 rather than exactly.

    Examples:
        >>> classify_dimensions(1920, 1080)
        <GeometryClass.LANDSCAPE: 'landscape'>
        >>> classify_dimensions(1920, 1081)
        <GeometryClass.LANDSCAPE: 'landscape'>
        >>> classify_dimensions(640, 480)
        <GeometryClass.OTHER: 'other'>

    Raises:
        ProcessingError: If either dimension is not a positive number.
    """
    if width <= 0 or height <= 0:
        raise ProcessingError(f"Invalid video dimensions: {width}x{height}")

    ratio = width / height
    if abs(ratio - LANDSCAPE_RATIO) < ASPECT_RATIO_TOLERANCE:
        return GeometryClass.LANDSCAPE
    if abs(ratio - PORTRAIT_RATIO) < ASPECT_RATIO_TOLERANCE:
        return GeometryClass.PORTRAIT
    return GeometryClass.OTHER


def parse_probe_output(stdout: str) -> VideoDimensions:
    """
    Extract width and height from ``ffprobe -of json`` output.

    Raises:
        ProcessingError: If the output is not JSON or lacks numeric dimensions.
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ProcessingError(f"Failed to parse ffprobe output: {e}", diagnostics=stdout) from e

    streams = data.get("streams") if isinstance(data, dict) else None
    stream = streams[0] if isinstance(streams, list) and streams else None
    if not isinstance(stream, dict):
        raise ProcessingError("ffprobe output has no video stream", diagnostics=stdout)

    width = stream.get("width")
    height = stream.get("height")
    for value in (width, height):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ProcessingError(
                "Width or height not found or invalid in ffprobe output", diagnostics=stdout
            )

    return VideoDimensions(width=width, height=height)


class GeometryClassifier:
    """
    Classifies a local video file by probing it with ffprobe.

    Attributes:
        ffprobe_path: Executable to run (name on PATH or absolute path)
    """

    def __init__(self, ffprobe_path: str = "ffprobe") -> None:
        self.ffprobe_path = ffprobe_path

    async def probe(self, path: Path) -> VideoDimensions:
        """
        Read the first video stream's width and height.

        Raises:
            ProcessingError: On a non-zero exit or unusable output.
        """
        result = await run_tool(
            self.ffprobe_path,
            "-v",
            "error",
            "-select_streams",
            "v:0",
            "-show_entries",
            "stream=width,height",
            "-of",
            "json",
            str(path),
        )
        if result.returncode != 0:
            raise ProcessingError(
                f"ffprobe error (exit code {result.returncode})",
                diagnostics=result.stderr,
            )
        return parse_probe_output(result.stdout)

    async def classify(self, path: Path) -> GeometryClass:
        dimensions = await self.probe(path)
        geometry = classify_dimensions(dimensions.width, dimensions.height)
        logger.info(
            "Classified video geometry",
            extra={
                "path": str(path),
                "width": dimensions.width,
                "height": dimensions.height,
                "geometry": geometry.value,
            },
        )
        return geometry


class FastStartRemuxer:
    """
    Produces a fast-start copy of an MP4 with ffmpeg.

    The output path is the input path plus ``.processed``, so callers can find
    and delete it without extra bookkeeping.

    Attributes:
        ffmpeg_path: Executable to run (name on PATH or absolute path)
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg") -> None:
        self.ffmpeg_path = ffmpeg_path

    @staticmethod
    def output_path_for(input_path: Path) -> Path:
        return input_path.with_name(input_path.name + PROCESSED_SUFFIX)

    async def remux(self, input_path: Path) -> Path:
        """
        Move the moov atom to the front, keep metadata, copy all streams.

        A partial output left by a failed run is removed before raising, so a
        failure leaves only the input behind.

        Returns:
            Path: The remuxed file.

        Raises:
            ProcessingError: If ffmpeg exits non-zero or cannot be started.
        """
        output_path = self.output_path_for(input_path)
        try:
            result = await run_tool(
                self.ffmpeg_path,
                "-i",
                str(input_path),
                "-movflags",
                "faststart",
                "-map_metadata",
                "0",
                "-codec",
                "copy",
                "-f",
                "mp4",
                str(output_path),
            )
            if result.returncode != 0:
                raise ProcessingError(
                    f"ffmpeg error (exit code {result.returncode})",
                    diagnostics=result.stderr,
                )
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                output_path.unlink()
            raise

        logger.info(
            "Remuxed video for fast start",
            extra={"input": str(input_path), "output": str(output_path)},
        )
        return output_path
