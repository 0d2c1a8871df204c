"""Resilient invocation of the external AI command-line tool.

One call runs ``<cli> exec --sandbox read-only --full-auto [...] <prompt>``
with:
- a wall-clock timeout (SIGTERM, then SIGKILL after a grace period)
- retries with exponential backoff on non-zero exit or timeout
- capped capture of stdout and stderr
- JSON parsing of stdout, falling back to the first embedded JSON object
"""

from __future__ import annotations

import asyncio
import json
import tempfile
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

from pr_attention.config import AIConfig, get_settings
from pr_attention.logging import get_logger

from .exceptions import InvokerExhaustedError, InvokerOutputError, InvokerStartError

logger = get_logger(__name__)

T = TypeVar("T")

TIMEOUT_EXIT_CODE = 124
"""Exit code reported for an invocation killed by the timeout."""

STDERR_EXCERPT_CHARS = 500
_READ_CHUNK_BYTES = 64 * 1024


def extract_json(text: str) -> Any | None:
    """Parse text as JSON, else the first balanced JSON object inside it.

    Returns:
        The decoded value, or None if nothing parses
    """
    stripped = text.strip()
    if not stripped:
        return None
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    start = stripped.find("{")
    while start != -1:
        try:
            value, _end = decoder.raw_decode(stripped, start)
            return value
        except json.JSONDecodeError:
            start = stripped.find("{", start + 1)
    return None


class _CappedBuffer:
    """Collects bytes up to a limit and silently drops the rest."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._chunks: list[bytes] = []
        self._size = 0
        self.truncated = False

    def feed(self, chunk: bytes) -> None:
        remaining = self._limit - self._size
        if len(chunk) > remaining:
            self.truncated = True
            chunk = chunk[: max(0, remaining)]
        if chunk:
            self._chunks.append(chunk)
            self._size += len(chunk)

    def text(self) -> str:
        return b"".join(self._chunks).decode("utf-8", errors="replace")


async def _drain(stream: asyncio.StreamReader | None, buffer: _CappedBuffer) -> None:
    # Keep reading past the cap so the child never blocks on a full pipe
    if stream is None:
        return
    while chunk := await stream.read(_READ_CHUNK_BYTES):
        buffer.feed(chunk)


@dataclass(frozen=True)
class ProcessOutput:
    """What one attempt produced."""

    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False
    truncated: bool = False


@dataclass(frozen=True)
class InvokeResult:
    """Outcome of an invocation, after retries."""

    raw: str
    """Captured stdout of the last attempt."""

    stderr: str
    exit_code: int
    attempts: int
    parsed: Any | None = None
    """JSON decoded from stdout, when the last attempt succeeded and it parsed."""

    timed_out: bool = False
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def error(self) -> str | None:
        if self.ok:
            return None
        return self.stderr.strip() or f"codex exited with code {self.exit_code}"

    @property
    def stderr_excerpt(self) -> str:
        return self.stderr[-STDERR_EXCERPT_CHARS:]

    def raise_for_exit(self) -> None:
        """Raise InvokerExhaustedError unless the last attempt exited zero."""
        if self.ok:
            return
        raise InvokerExhaustedError(
            f"AI command failed after {self.attempts} attempt(s): {self.error}",
            attempts=self.attempts,
            exit_code=self.exit_code,
            stderr_excerpt=self.stderr_excerpt,
        )


class ResilientInvoker:
    """Run the AI CLI with timeout, retry and bounded output capture.

    Usage:
        invoker = ResilientInvoker()
        result = await invoker.run("Summarize this PR", context=diff_text)
        if result.ok:
            print(result.raw)

        summary = await invoker.run_json(
            "Summarize this PR", output_schema=SCHEMA, validate=Summary.model_validate
        )
    """

    def __init__(
        self,
        config: AIConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the invoker.

        Args:
            config: CLI path, limits and retry policy (settings default if None)
            sleep: Awaitable used for backoff delays
        """
        self._config = config or get_settings().ai
        self._sleep = sleep

    async def run(
        self,
        prompt: str,
        *,
        output_schema: str | dict[str, Any] | None = None,
        context: str | None = None,
        context_filename: str = "context.txt",
        model: str | None = None,
        cwd: str | Path | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
    ) -> InvokeResult:
        """Invoke the CLI, retrying non-zero exits and timeouts.

        Context and schema are written to a scratch directory that is
        removed afterwards; the prompt is told where the context file is.

        Args:
            prompt: Instruction passed as the final argument
            output_schema: JSON Schema (text or dict) for --output-schema
            context: Extra data written to a file rather than the command line
            context_filename: Name of the context file
            model: --model override (config default if None)
            cwd: Working directory for the process
            timeout_seconds: Per-attempt timeout (config default if None)
            max_retries: Retries after the first attempt (config default if None)

        Returns:
            InvokeResult of the last attempt; a non-zero exit_code means
            every attempt failed

        Raises:
            InvokerStartError: If the executable cannot be started
        """
        timeout = timeout_seconds if timeout_seconds is not None else self._config.timeout_seconds
        retries = max_retries if max_retries is not None else self._config.max_retries

        with tempfile.TemporaryDirectory(prefix="codex-ctx-") as scratch:
            args = self._build_args(
                prompt,
                scratch=Path(scratch),
                output_schema=output_schema,
                context=context,
                context_filename=context_filename,
                model=model or self._config.model,
            )

            attempts = 0
            while True:
                output = await self._spawn(args, timeout=timeout, cwd=cwd)
                attempts += 1
                if output.exit_code == 0 or attempts > retries:
                    break

                delay = self._config.retry_base_delay_seconds * 2 ** (attempts - 1)
                logger.warning(
                    "AI command exited with {} (attempt {}/{}), retrying in {:.1f}s",
                    output.exit_code,
                    attempts,
                    retries + 1,
                    delay,
                )
                await self._sleep(delay)

        parsed = extract_json(output.stdout) if output.exit_code == 0 else None
        return InvokeResult(
            raw=output.stdout,
            stderr=output.stderr,
            exit_code=output.exit_code,
            attempts=attempts,
            parsed=parsed,
            timed_out=output.timed_out,
            truncated=output.truncated,
        )

    async def run_json(
        self,
        prompt: str,
        *,
        output_schema: str | dict[str, Any],
        validate: Callable[[Any], T] | None = None,
        **kwargs: Any,
    ) -> T | Any:
        """Invoke the CLI and return its JSON output.

        Args:
            prompt: Instruction passed as the final argument
            output_schema: JSON Schema the output must follow
            validate: Optional validator, e.g. a pydantic model's model_validate
            **kwargs: Passed through to run()

        Raises:
            InvokerStartError: If the executable cannot be started
            InvokerExhaustedError: If every attempt failed
            InvokerOutputError: If the output holds no parseable JSON
        """
        result = await self.run(prompt, output_schema=output_schema, **kwargs)
        result.raise_for_exit()

        if result.parsed is None:
            raise InvokerOutputError(
                f"codex returned unparseable output: {result.raw[:500]}", raw=result.raw
            )
        if validate is not None:
            return validate(result.parsed)
        return result.parsed

    # -------------------------------------------------------------------------
    # Process handling
    # -------------------------------------------------------------------------
    def _build_args(
        self,
        prompt: str,
        *,
        scratch: Path,
        output_schema: str | dict[str, Any] | None,
        context: str | None,
        context_filename: str,
        model: str | None,
    ) -> list[str]:
        if context:
            context_path = scratch / context_filename
            context_path.write_text(context, encoding="utf-8")
            prompt = f"{prompt}\n\nThe context data is in the file: {context_path}"

        args = ["exec", "--sandbox", "read-only", "--full-auto"]
        if model:
            args += ["--model", model]
        if output_schema is not None:
            schema_path = scratch / "output-schema.json"
            schema_text = (
                output_schema if isinstance(output_schema, str) else json.dumps(output_schema)
            )
            schema_path.write_text(schema_text, encoding="utf-8")
            args += ["--output-schema", str(schema_path)]
        args.append(prompt)
        return args

    async def _spawn(
        self,
        args: list[str],
        *,
        timeout: float,
        cwd: str | Path | None,
    ) -> ProcessOutput:
        """Run one attempt to completion or timeout."""
        try:
            process = await asyncio.create_subprocess_exec(
                self._config.cli_path,
                *args,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise InvokerStartError(f"Failed to start {self._config.cli_path}: {e}") from e

        stdout = _CappedBuffer(self._config.max_output_bytes)
        stderr = _CappedBuffer(self._config.max_output_bytes)
        readers = asyncio.gather(_drain(process.stdout, stdout), _drain(process.stderr, stderr))

        timed_out = False
        try:
            returncode = await asyncio.wait_for(process.wait(), timeout)
        except TimeoutError:
            timed_out = True
            await self._terminate(process)

        try:
            await asyncio.wait_for(readers, max(self._config.kill_grace_seconds, 1.0))
        except TimeoutError:
            # A grandchild may still hold the pipes; keep what was read
            readers.cancel()

        truncated = stdout.truncated or stderr.truncated
        if timed_out:
            logger.warning("AI command timed out after {:.0f}s", timeout)
            return ProcessOutput(
                exit_code=TIMEOUT_EXIT_CODE,
                stdout=stdout.text(),
                stderr=stderr.text() + "\n[codex timeout]",
                timed_out=True,
                truncated=truncated,
            )

        # Killed by a signal (negative return code) counts as a plain failure
        exit_code = returncode if returncode is not None and returncode >= 0 else 1
        return ProcessOutput(
            exit_code=exit_code,
            stdout=stdout.text(),
            stderr=stderr.text(),
            truncated=truncated,
        )

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """SIGTERM, then SIGKILL if the process outlives the grace period."""
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), self._config.kill_grace_seconds)
        except TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()
