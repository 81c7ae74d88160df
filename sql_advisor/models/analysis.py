"""Request/response types for the analysis endpoint."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Dbms = Literal["sqlserver", "postgres", "mysql"]


# Submitted query plus optional plan markup and free-text hints.
class AnalysisRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Target engine; selects the tokenizer dialect and the prompt persona
    dbms: Dbms = "sqlserver"
    sql_text: str = Field(..., min_length=1)
    # Execution plan markup (XML for SQL Server, text/JSON elsewhere)
    plan_xml: Optional[str] = None
    # Known indexes, row counts, symptoms
    context: Optional[str] = None
    # Engine version hint
    version: Optional[str] = None


class AnalysisResult(BaseModel):
    summary: str
    findings: List[str] = Field(default_factory=list)
    # Callers show a placeholder when this is empty
    rewrite_sql: Optional[str] = None
    index_recommendations: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)
    test_steps: List[str] = Field(default_factory=list)
