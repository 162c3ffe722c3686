"""HTTP API for two-phase search with query expansion.

Why: Consumable API without business logic; pure delegation to RunSearch.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

try:
    from fastapi import FastAPI, HTTPException
    from pydantic import BaseModel, Field
except ImportError as err:
    raise ImportError("FastAPI not installed. Install with: pip install 'prf-engine[http]'") from err

from prf_engine.application.dto.expansion_dto import expansion_controls
from prf_engine.application.dto.search_dto import SearchQuery
from prf_engine.config.composition import Container
from prf_engine.config.logging import setup_logging


class SearchRequestModel(BaseModel):
    """Request model for /v1/search endpoint."""

    query: str
    query_id: str = "1"
    top_k: int = Field(default=10, gt=0)
    expand: bool = True
    model: str | None = None
    fb_docs: int | None = Field(default=None, ge=0)
    fb_terms: int | None = Field(default=None, ge=0)
    feedback_selector: str | None = None
    no_second_pass: bool = False


class HitModel(BaseModel):
    docno: str
    score: float
    rank: int


class SearchResponseModel(BaseModel):
    """Response model for /v1/search endpoint."""

    status: str
    query_id: str | None = None
    hits: list[HitModel] | None = None
    expanded_query: str | None = None
    expansion_error: str | None = None
    error: str | None = None


# Set on startup unless a test installed one first
container: Container | None = None


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    global container
    if container is None:
        container = Container()
        setup_logging(container.settings.log_level, container.settings.log_json)
    yield


app = FastAPI(title="PRF Query Expansion API", version="0.1.0", lifespan=lifespan)


@app.post("/v1/search", response_model=SearchResponseModel)
def search(req: SearchRequestModel) -> SearchResponseModel:
    """First-pass BM25, query expansion, second pass.

    Example:
        POST /v1/search
        {"query": "query expansion", "top_k": 5, "model": "Bo1", "fb_docs": 3}
    """
    if container is None:
        raise HTTPException(status_code=503, detail="Service not initialized")

    try:
        uc = container.search_use_case()
        dto = SearchQuery(
            text=req.query,
            query_id=req.query_id,
            expand=req.expand,
            top_k=req.top_k,
            controls=expansion_controls(
                model=req.model,
                feedback_documents=req.fb_docs,
                feedback_terms=req.fb_terms,
                no_second_pass=req.no_second_pass,
                feedback_selector=req.feedback_selector,
            ),
        )
        result = uc.execute(dto)
    except Exception as ex:
        return SearchResponseModel(status="error", error=f"Internal error: {ex}")

    if not result.ok or result.value is None:
        return SearchResponseModel(status="error", error=str(result.error))

    outcome = result.value
    return SearchResponseModel(
        status="success",
        query_id=outcome.query_id,
        hits=[HitModel(docno=h.docno, score=h.score, rank=h.rank) for h in outcome.hits],
        expanded_query=outcome.expanded_query,
        expansion_error=outcome.expansion_error,
    )


@app.get("/healthz")
def health() -> dict[str, str]:
    return {"status": "healthy", "service": "prf-engine"}
