"""Error Document — the structured body written for every unhandled failure.

Invariants:
    - Frozen: built once per failure, extended only through with_extensions()
    - Wire names are camelCase (requestId, traceId); traceId may be null
    - Serialized as compact JSON, field order status, title, type, detail, ...

Design Decisions:
    - Pydantic model over a dict: aliases and immutability come for free
"""

from pydantic import BaseModel, ConfigDict, Field

ERROR_TITLE = "An error occurred"
PROBLEM_MEDIA_TYPE = "application/problem+json"


class ErrorDocument(BaseModel):
    """Machine-readable description of a failed request."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: int
    title: str = ERROR_TITLE
    type: str
    detail: str
    instance: str | None = None
    request_id: str | None = Field(default=None, alias="requestId")
    trace_id: str | None = Field(default=None, alias="traceId")

    def with_extensions(
        self,
        instance: str | None,
        request_id: str | None,
        trace_id: str | None,
    ) -> "ErrorDocument":
        """Return a copy with request-scoped fields filled in where still empty."""
        return self.model_copy(update={
            "instance": self.instance or instance,
            "request_id": self.request_id or request_id,
            "trace_id": self.trace_id or trace_id,
        })

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")
