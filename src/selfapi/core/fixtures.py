"""Handler specs and request/response fixtures.

Objects
~~~~~~~
``ExampleRequest``
    Literal request description: ``url_parameters`` (substituted into ``:name``
    or ``*`` placeholders), ``query_parameters``, ``headers`` and an optional
    ``body``. The camelCase aliases ``urlParameters`` / ``queryParameters`` are
    accepted so JSON fixtures load unchanged.

``ExampleResponse``
    Expected response. ``status`` is an int (default 200) or a predicate
    receiving the actual status. ``headers`` maps header names to literal
    values or predicates; ``None`` means headers are not checked. ``body`` is
    a literal string, a predicate receiving the stripped actual body, or
    ``None`` (unchecked).

``Example``
    One ``request``/``response`` pair, used both for documentation and for
    self-testing.

``HandlerSpec``
    Documentation + implementation bundle for one HTTP method on one node:
    ``title``, ``description``, ``handler`` (opaque callable, only ever handed
    to a host sink) and ``examples`` in declaration order.

All models are pydantic v2 models; mappings are validated into them via
:func:`coerce_spec`.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "DEFAULT_STATUS",
    "Example",
    "ExampleRequest",
    "ExampleResponse",
    "HandlerSpec",
    "coerce_spec",
]

DEFAULT_STATUS = 200

StatusExpectation = Union[int, Callable[[int], bool]]
ValueExpectation = Union[str, Callable[[str], bool]]


class ExampleRequest(BaseModel):
    """Request half of an example."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    url_parameters: Dict[str, Any] = Field(default_factory=dict, alias="urlParameters")
    query_parameters: Dict[str, Any] = Field(default_factory=dict, alias="queryParameters")
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None


class ExampleResponse(BaseModel):
    """Expected response half of an example."""

    model_config = ConfigDict(extra="forbid")

    status: StatusExpectation = DEFAULT_STATUS
    headers: Optional[Dict[str, ValueExpectation]] = None
    body: Optional[ValueExpectation] = None

    def expectation(self) -> Dict[str, Any]:
        """Return the declared expectation as a plain dict (unset parts omitted)."""
        data: Dict[str, Any] = {"status": self.status}
        if self.headers is not None:
            data["headers"] = dict(self.headers)
        if self.body is not None:
            data["body"] = self.body
        return data


class Example(BaseModel):
    """A recorded request/response fixture."""

    model_config = ConfigDict(extra="forbid")

    request: ExampleRequest = Field(default_factory=ExampleRequest)
    response: ExampleResponse = Field(default_factory=ExampleResponse)


class HandlerSpec(BaseModel):
    """Everything registered for one HTTP method on one resource node."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    handler: Callable[..., Any]
    examples: List[Example] = Field(default_factory=list)

    @property
    def display_title(self) -> str:
        return self.title or "(no title)"


def coerce_spec(spec: Union[HandlerSpec, Mapping[str, Any], None] = None, **fields: Any) -> HandlerSpec:
    """Build a :class:`HandlerSpec` from a spec, a mapping and/or keyword fields.

    Keyword fields override values found in ``spec``.
    """
    if isinstance(spec, HandlerSpec):
        if not fields:
            return spec
        return HandlerSpec.model_validate({**_spec_fields(spec), **fields})
    data: Dict[str, Any] = dict(spec or {})
    data.update(fields)
    return HandlerSpec.model_validate(data)


def _spec_fields(spec: HandlerSpec) -> Dict[str, Any]:
    return {
        "title": spec.title,
        "description": spec.description,
        "handler": spec.handler,
        "examples": spec.examples,
    }
