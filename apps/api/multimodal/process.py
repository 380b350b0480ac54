import asyncio
import logging
from typing import Sequence, Tuple

logger = logging.getLogger(__name__)


async def run_process(cmd: Sequence[str], timeout: float) -> Tuple[int, str, str]:
    """
    Run an external command without blocking the event loop.

    Returns (returncode, stdout, stderr). Start failures (e.g. FileNotFoundError
    for a missing binary) propagate to the caller. On timeout the process is
    killed and asyncio.TimeoutError is raised.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Killing %s after %.0fs timeout", cmd[0], timeout)
        process.kill()
        await process.wait()
        raise

    return (
        process.returncode,
        stdout.decode("utf-8", errors="ignore"),
        stderr.decode("utf-8", errors="ignore"),
    )
