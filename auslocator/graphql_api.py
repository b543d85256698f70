"""GraphQL endpoint: verifyAddress, searchLocations and healthCheck queries.

Mirrors the REST routes; inputs are validated with the same pydantic models.
"""

import logging

import strawberry
from pydantic import ValidationError
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from auslocator import models, schemas
from auslocator.integrations.australia_post import australia_post_client

logger = logging.getLogger(__name__)


@strawberry.type
class Location:
    id: int
    location: str
    postcode: int
    state: str
    latitude: float | None = None
    longitude: float | None = None
    category: str | None = None

    @classmethod
    def from_model(cls, loc: models.Location) -> "Location":
        return cls(**loc.model_dump())


@strawberry.type
class ValidationResult:
    is_valid: bool
    message: str
    location: Location | None = None


@strawberry.type
class SearchResult:
    locations: list[Location]
    total: int
    query: str


@strawberry.input
class VerifyAddressInput:
    postcode: str
    suburb: str
    state: str


@strawberry.input
class SearchLocationsInput:
    query: str
    category: str | None = None
    limit: int | None = None
    offset: int | None = None


def _input_error(e: ValidationError) -> ValueError:
    fields = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )
    return ValueError(f"Invalid input data: {fields}")


def _client(info: Info):
    return info.context.get("lookup_client", australia_post_client)


@strawberry.type
class Query:
    @strawberry.field
    async def verify_address(self, info: Info, input: VerifyAddressInput) -> ValidationResult:
        try:
            req = schemas.VerifyAddressRequest(
                postcode=input.postcode, suburb=input.suburb, state=input.state,
            )
        except ValidationError as e:
            raise _input_error(e) from e

        result = await _client(info).verify(req.postcode, req.suburb, req.state)
        return ValidationResult(
            is_valid=result.isValid,
            message=result.message,
            location=Location.from_model(result.location) if result.location else None,
        )

    @strawberry.field
    async def search_locations(self, info: Info, input: SearchLocationsInput) -> SearchResult:
        try:
            window = {k: v for k, v in (("limit", input.limit), ("offset", input.offset)) if v is not None}
            req = schemas.SearchLocationsPage(query=input.query, category=input.category, **window)
        except ValidationError as e:
            raise _input_error(e) from e

        result = await _client(info).search(
            req.query, req.category, limit=req.limit, offset=req.offset,
        )
        return SearchResult(
            locations=[Location.from_model(loc) for loc in result.locations],
            total=result.total,
            query=req.query,
        )

    @strawberry.field
    async def health_check(self, info: Info) -> str:
        return await _client(info).health_check()


schema = strawberry.Schema(query=Query)


async def get_context() -> dict:
    return {"lookup_client": australia_post_client}


graphql_router = GraphQLRouter(schema, context_getter=get_context)
