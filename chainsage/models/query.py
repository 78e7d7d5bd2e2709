"""
Query and Result Models

The generated query handed from the generator to the executor, and the
canonical result set every executor produces.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class SQLQuery(BaseModel):
    """Raw SQL produced for an asynchronous-job provider."""

    kind: Literal["sql"] = "sql"
    sql: str = Field(..., min_length=1, description="Query text in the provider's dialect")
    dialect: str = Field(..., description="Provider the query was written for")
    question: str | None = Field(None, description="Question the query answers")

    model_config = ConfigDict(frozen=True)


class EndpointCall(BaseModel):
    """One catalog endpoint chosen by the model, with extracted parameters."""

    endpoint_group: str = ""
    name: str = ""
    path: str = Field(..., min_length=1)
    method: Literal["GET"] = "GET"
    extracted_parameters: dict[str, Any] = Field(default_factory=dict)
    required_parameters: list[str] = Field(default_factory=list)

    @property
    def missing_parameters(self) -> list[str]:
        return [
            name
            for name in self.required_parameters
            if self.extracted_parameters.get(name) in (None, "")
        ]


class EndpointSelection(BaseModel):
    """Endpoint selection for a synchronous provider."""

    kind: Literal["endpoint"] = "endpoint"
    can_query: bool
    endpoints: list[EndpointCall] = Field(default_factory=list)
    message: str | None = None
    question: str | None = None

    @property
    def missing_parameters(self) -> list[str]:
        missing: list[str] = []
        for endpoint in self.endpoints:
            missing.extend(p for p in endpoint.missing_parameters if p not in missing)
        return missing

    @property
    def is_executable(self) -> bool:
        return self.can_query and bool(self.endpoints) and not self.missing_parameters


GeneratedQuery = Annotated[Union[SQLQuery, EndpointSelection], Field(discriminator="kind")]


class ResultSet(BaseModel):
    """
    Canonical tabular result.

    Serialized as ``{"columnNames": [...], "rows": [...]}``. No rows is an
    empty ResultSet, never ``None``.
    """

    column_names: list[str] = Field(default_factory=list, alias="columnNames")
    rows: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def to_canonical(self) -> dict[str, Any]:
        return {"columnNames": list(self.column_names), "rows": list(self.rows)}

    def to_json(self) -> str:
        return json.dumps(self.to_canonical(), default=str)
