from __future__ import annotations
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Union

import structlog

from ..core.checker import get_checker
from ..core.errors import CleanupError
from ..core.models import CaseReport, Result, ResultType, TestCase
from ..executor.registry import ExecutorRegistry, default_registry, language_for
from ..settings import Settings, load_settings

log = structlog.get_logger(__name__)


def truncate(text: Optional[str], limit: int) -> Optional[str]:
    if text is None or len(text) <= limit:
        return text
    return text[:limit] + f"\n... [truncated {len(text) - limit} chars]"


class TestSetRunner:
    """
    Build a solution once, run it against every test case in order, then clean up.
    """

    __test__ = False  # not a pytest class

    def __init__(self, registry: Optional[ExecutorRegistry] = None, settings: Optional[Settings] = None):
        self.registry = registry or default_registry()
        self.settings = settings or load_settings()

    def _report(self, index: int, case: TestCase, result: Result, checker_name: str) -> CaseReport:
        verdict = None
        if case.expected_output is not None:
            verdict = (
                result.exit_type is ResultType.SUCCESS
                and get_checker(checker_name)(case.expected_output, result.output or "")
            )
        limit = self.settings.char_limit
        result = replace(result, output=truncate(result.output, limit), error=truncate(result.error, limit))
        return CaseReport(index=index, result=result, verdict=verdict)

    def run(
        self,
        src_file: Union[str, Path],
        cases: Sequence[TestCase],
        language: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        checker: Optional[str] = None,
    ) -> List[CaseReport]:
        """
        BuildError and UnknownLanguage propagate; a failed cleanup is only logged.
        """
        tag = language or language_for(src_file)
        checker_name = checker or self.settings.default_checker
        get_checker(checker_name)

        factory = self.registry.resolve(tag)
        executor = factory(src_file, self.settings.exec_config(tag, timeout_ms))
        executor.build()
        try:
            reports = []
            for i, case in enumerate(cases):
                result = executor.run(case.input)
                reports.append(self._report(i, case, result, checker_name))
                log.info("case.done", src=str(src_file), index=i,
                         exit_type=result.exit_type.value, verdict=reports[-1].verdict)
            return reports
        finally:
            try:
                executor.cleanup()
            except CleanupError as e:
                log.warning("cleanup.swallowed", src=str(src_file), error=str(e))
