from __future__ import annotations
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from ..core.errors import BuildError, CompileError, ConfigError, UnknownLanguage
from ..core.models import TestCase
from ..executor.registry import default_registry
from ..logging import setup_logging
from ..services.test_runner import TestSetRunner
from ..settings import Settings, load_settings

setup_logging()
app = FastAPI(title="cp-runner")


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    return load_settings()


def get_runner() -> TestSetRunner:
    # a broken config file is a server fault, not a bad request
    try:
        settings = get_settings()
    except ConfigError as e:
        raise HTTPException(status_code=500, detail=f"configuration error: {e}")
    return TestSetRunner(default_registry(), settings)


# --------- Schemas ---------
class CaseReq(BaseModel):
    input: str = ""
    expected_output: Optional[str] = None


class RunReq(BaseModel):
    src_file: str
    language: Optional[str] = None
    timeout_ms: Optional[int] = Field(None, gt=0)
    checker: Optional[str] = None
    cases: List[CaseReq]


# --------- Endpoints ---------

@app.get("/health")
def health():
    return {"ok": True}


@app.get("/languages")
def languages():
    return {"languages": default_registry().tags()}


@app.post("/run")
def run(req: RunReq, runner: TestSetRunner = Depends(get_runner)):
    cases = [TestCase(input=c.input, expected_output=c.expected_output) for c in req.cases]
    try:
        reports = runner.run(
            req.src_file,
            cases,
            language=req.language,
            timeout_ms=req.timeout_ms,
            checker=req.checker,
        )
    except UnknownLanguage as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CompileError as e:
        raise HTTPException(status_code=422, detail={"error": str(e), "stderr": e.stderr})
    except BuildError as e:
        raise HTTPException(status_code=422, detail={"error": str(e)})
    return {
        "results": [
            {"index": r.index, "verdict": r.verdict, **r.result.to_dict()}
            for r in reports
        ]
    }
