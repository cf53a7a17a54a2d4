from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from rgpanel.exceptions import SearchError, ValidationError
from rgpanel.models.search import LineRecord, SearchOptions
from rgpanel.utils.error_handling import log_errors

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


def build_rg_args(options: SearchOptions, rg_binary: str = "rg") -> list[str]:
    """Build ripgrep arguments for the search options."""
    args = [
        rg_binary,
        "--json",
        "-H",
        "-n",
        "-C",
        str(options.context_lines),
    ]

    if not options.case_sensitive:
        args.append("-i")

    if options.search_hidden:
        args.extend(["--hidden", "--no-ignore"])

    if not options.regex:
        args.append("--fixed-strings")

    if options.file_type:
        args.extend(["-t", options.file_type])

    for glob in options.include_globs:
        if glob:
            args.extend(["-g", glob])

    for glob in options.exclude_globs:
        if glob:
            args.extend(["-g", f"!{glob}"])

    args.extend(["--max-depth", str(options.max_depth)])

    args.append("--")
    args.append(options.pattern)
    args.append(options.directory)

    return args


def parse_rg_output(output: str) -> list[LineRecord]:
    """Parse ripgrep JSON output into line records sorted by path and line number."""
    records: list[LineRecord] = []

    for raw_line in output.splitlines():
        if not raw_line:
            continue

        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError as exc:
            msg = "Failed to parse ripgrep output"
            raise SearchError(msg, context={"reason": "invalid_json"}) from exc

        event_type = payload.get("type")
        if event_type not in {"match", "context"}:
            continue

        data = payload.get("data", {})
        path_text = data.get("path", {}).get("text")
        line_number = data.get("line_number")
        line_text = data.get("lines", {}).get("text")

        # Non-UTF-8 paths and lines arrive as "bytes" instead of "text"
        if not path_text or line_number is None or line_text is None:
            continue

        records.append(
            LineRecord(
                path=path_text,
                line_number=int(line_number),
                content=line_text.rstrip("\r\n"),
                is_match=event_type == "match",
            )
        )

    records.sort(key=lambda record: (record.path, record.line_number))
    return records


class RipgrepSearchService:
    """Runs ripgrep for a set of search options and returns its line records."""

    def __init__(
        self,
        search_root: str | Path,
        rg_binary: str = "rg",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.search_root = Path(search_root)
        self.rg_binary = rg_binary
        self.timeout_seconds = timeout_seconds

    @log_errors("ripgrep_search")
    async def search(self, options: SearchOptions) -> list[LineRecord]:
        """
        Run one search.

        Returns:
            Line records, empty when nothing matched

        Raises:
            ValidationError: If the pattern is empty or the directory escapes the root
            FileNotFoundError: If the directory does not exist
            SearchError: If ripgrep is missing, times out, or reports an error
                without producing any results
        """
        if not options.pattern:
            msg = "Pattern must be non-empty"
            raise ValidationError(msg, context={"field": "pattern"})

        search_dir = self._resolve_directory(options.directory)
        args = build_rg_args(
            options.model_copy(update={"directory": search_dir}),
            rg_binary=self.rg_binary,
        )

        stdout, stderr, exit_code = await self._run_rg(args)

        if exit_code == 1:
            records: list[LineRecord] = []
        elif exit_code == 0:
            records = parse_rg_output(stdout)
        else:
            # rg exits 2 on any error, including one unreadable file among many
            records = parse_rg_output(stdout)
            if records:
                logger.warning(
                    "Ripgrep reported errors, keeping partial results",
                    extra={
                        "exit_code": exit_code,
                        "stderr": stderr.strip(),
                        "record_count": len(records),
                    },
                )
        if exit_code not in (0, 1) and not records:
            raise SearchError(
                stderr.strip() or "Search command failed",
                context={
                    "reason": "rg_failed",
                    "exit_code": exit_code,
                },
            )

        logger.info(
            "Ripgrep search completed",
            extra={
                "pattern_length": len(options.pattern),
                "directory": options.directory,
                "case_sensitive": options.case_sensitive,
                "search_hidden": options.search_hidden,
                "max_depth": options.max_depth,
                "context_lines": options.context_lines,
                "record_count": len(records),
            },
        )
        return records

    def _resolve_directory(self, directory: str) -> str:
        """Directory as a path relative to the search root, which is rg's cwd."""
        if "\x00" in directory:
            msg = "Directory contains null bytes"
            raise ValidationError(msg, context={"field": "directory"})

        root = self.search_root.resolve()
        candidate = Path(directory.strip() or ".")
        resolved = (candidate if candidate.is_absolute() else root / candidate).resolve()

        try:
            relative = resolved.relative_to(root)
        except ValueError:
            msg = "Directory is outside the search root"
            raise ValidationError(
                msg,
                context={"field": "directory", "reason": "outside_root"},
            ) from None

        if not resolved.exists():
            msg = f"Directory not found: {directory}"
            raise FileNotFoundError(msg)

        if not resolved.is_dir():
            msg = "Directory path is not a directory"
            raise ValidationError(
                msg,
                context={"field": "directory", "reason": "not_a_directory"},
            )

        if relative == Path():
            return "."
        return relative.as_posix()

    async def _run_rg(self, args: Iterable[str]) -> tuple[str, str, int]:
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.search_root),
            )
        except FileNotFoundError as exc:
            msg = "ripgrep (rg) is not available"
            raise SearchError(msg, context={"reason": "rg_missing"}) from exc
        except OSError as exc:
            msg = f"ripgrep (rg) could not be started: {exc}"
            raise SearchError(msg, context={"reason": "rg_not_executable"}) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            process.kill()
            await process.communicate()
            msg = "Search timed out"
            raise SearchError(
                msg,
                context={
                    "reason": "timeout",
                    "timeout_seconds": self.timeout_seconds,
                },
            ) from exc

        exit_code = process.returncode if process.returncode is not None else 1
        stdout_text = stdout.decode("utf-8", errors="replace")
        stderr_text = stderr.decode("utf-8", errors="replace")
        return stdout_text, stderr_text, exit_code
