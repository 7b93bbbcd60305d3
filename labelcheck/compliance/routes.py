"""
Label compliance API routes.
"""

from pydantic import ValidationError
from starlette.responses import JSONResponse
from starlette.routing import Route

from labelcheck.compliance.analysis_store import AnalysisStore
from labelcheck.compliance.delta import compare
from labelcheck.compliance.disambiguation import CategoryResolver, needs_selection
from labelcheck.compliance.document_parser import parse_classifier_output
from labelcheck.compliance.normalizer import ComplianceTableNormalizer
from labelcheck.compliance.session_service import SessionTracker
from labelcheck.exceptions import (
    InvalidCategoryError,
    SessionComparisonError,
    UnknownReferenceError,
)
from labelcheck.logging_config import bind_request_context
from labelcheck.models.enums import DisambiguationState
from labelcheck.models.schemas import (
    AnalysisResponse,
    AppendIterationRequest,
    CategoryOptionsResponse,
    CompareRequest,
    ComparisonResponse,
    CreateSessionRequest,
    ErrorResponse,
    HistoryResponse,
    ProgressResponse,
    SelectCategoryRequest,
    SelectCategoryResponse,
    SessionResponse,
)

normalizer = ComplianceTableNormalizer()

# Disambiguation states in which the user still owes a category choice
SELECTION_PENDING_STATES = {
    DisambiguationState.AWAITING_SELECTION,
    DisambiguationState.COMPARING,
}


def error_response(status_code: int, error: str, message: str, details: dict = None):
    """Create a standardized error response."""
    return JSONResponse(
        ErrorResponse(error=error, message=message, details=details).model_dump(),
        status_code=status_code,
    )


def not_found(e: UnknownReferenceError):
    return error_response(
        404, "not_found", str(e), {"resource": e.resource, "id": e.resource_id}
    )


def _db_path(request):
    return getattr(request.app.state, "db_path", None)


async def _read_json(request):
    try:
        return await request.json()
    except ValueError:
        return None


# ============== ANALYSES ==============

async def post_analysis(request):
    """Store a classifier document and report whether category selection is needed."""
    data = await _read_json(request)
    if not isinstance(data, dict):
        return error_response(400, "validation_error", "Invalid JSON body")

    store = AnalysisStore(_db_path(request))
    document = parse_classifier_output(data)
    bind_request_context(analysis_id=document.id)
    try:
        store.save(document)
    except ValueError as e:
        return error_response(409, "conflict", str(e))

    return JSONResponse(
        AnalysisResponse(
            document=normalizer.normalize_document(document),
            detected_category=document.category,
            needs_category_selection=needs_selection(document),
        ).model_dump(mode="json"),
        status_code=201,
    )


async def get_analysis(request):
    """Get a stored analysis with its table and recommendations in display order."""
    analysis_id = request.path_params["analysis_id"]
    bind_request_context(analysis_id=analysis_id)
    try:
        context = CategoryResolver(_db_path(request)).open_context(analysis_id)
    except UnknownReferenceError as e:
        return not_found(e)

    return JSONResponse(
        AnalysisResponse(
            document=normalizer.normalize_document(context.document),
            detected_category=context.detected_category,
            needs_category_selection=context.state in SELECTION_PENDING_STATES,
        ).model_dump(mode="json")
    )


async def get_category_options(request):
    """Side-by-side category comparison for an analysis."""
    analysis_id = request.path_params["analysis_id"]
    bind_request_context(analysis_id=analysis_id)
    resolver = CategoryResolver(_db_path(request))
    try:
        context = resolver.open_context(analysis_id)
    except UnknownReferenceError as e:
        return not_found(e)

    return JSONResponse(
        CategoryOptionsResponse(
            analysis_id=analysis_id,
            state=context.state,
            detected_category=context.detected_category,
            current_category=context.document.category,
            candidates=context.candidates(),
        ).model_dump(mode="json")
    )


async def post_select_category(request):
    """Apply a user's category choice to an analysis."""
    data = await _read_json(request)
    try:
        req = SelectCategoryRequest.model_validate(data)
    except ValidationError as e:
        return error_response(400, "validation_error", str(e))

    bind_request_context(analysis_id=req.analysis_id)
    resolver = CategoryResolver(_db_path(request))
    try:
        result = resolver.commit_selection(req.analysis_id, req.selected_category, req.reason)
    except InvalidCategoryError as e:
        return error_response(400, "invalid_category", str(e))

    response = SelectCategoryResponse(
        success=result.success,
        analysis_id=result.analysis_id,
        selected_category=result.selected_category,
        event=result.event,
        message=result.error,
    )
    return JSONResponse(
        response.model_dump(mode="json"),
        status_code=200 if result.success else 404,
    )


async def post_compare(request):
    """Compare two raw classifier documents without storing either."""
    data = await _read_json(request)
    try:
        req = CompareRequest.model_validate(data)
    except ValidationError as e:
        return error_response(400, "validation_error", str(e))

    comparison = compare(
        parse_classifier_output(req.previous),
        parse_classifier_output(req.current),
    )
    return JSONResponse(ComparisonResponse(comparison=comparison).model_dump(mode="json"))


# ============== SESSIONS ==============

async def post_session(request):
    """Start a session for an existing analysis."""
    data = await _read_json(request)
    try:
        req = CreateSessionRequest.model_validate(data)
    except ValidationError as e:
        return error_response(400, "validation_error", str(e))

    bind_request_context(analysis_id=req.origin_analysis_id)
    tracker = SessionTracker(_db_path(request))
    try:
        session = tracker.start_session(req.origin_analysis_id, req.title)
    except UnknownReferenceError as e:
        return not_found(e)

    return JSONResponse(
        SessionResponse(session=session).model_dump(mode="json"),
        status_code=201,
    )


def _history_response(session_id, history, status_code=200):
    return JSONResponse(
        HistoryResponse(
            session_id=session_id, iterations=history, total=len(history)
        ).model_dump(mode="json"),
        status_code=status_code,
    )


async def post_iteration(request):
    """Append an iteration and return the updated history."""
    session_id = request.path_params["session_id"]
    bind_request_context(session_id=session_id)
    data = await _read_json(request)
    try:
        req = AppendIterationRequest.model_validate(data)
        tracker = SessionTracker(_db_path(request))
        history = tracker.append(
            session_id,
            req.kind,
            payload=req.payload,
            timestamp=req.timestamp,
            analysis_id=req.analysis_id,
        )
    except ValidationError as e:
        return error_response(400, "validation_error", str(e))
    except UnknownReferenceError as e:
        return not_found(e)

    return _history_response(session_id, history, status_code=201)


async def post_followup(request):
    """Record a follow-up on an analysis, starting its session on the first one."""
    analysis_id = request.path_params["analysis_id"]
    bind_request_context(analysis_id=analysis_id)
    data = await _read_json(request)
    try:
        req = AppendIterationRequest.model_validate(data)
    except ValidationError as e:
        return error_response(400, "validation_error", str(e))

    tracker = SessionTracker(_db_path(request))
    try:
        session = tracker.ensure_session(analysis_id)
        bind_request_context(session_id=session.id)
        history = tracker.append(
            session.id,
            req.kind,
            payload=req.payload,
            timestamp=req.timestamp,
            analysis_id=req.analysis_id,
        )
    except UnknownReferenceError as e:
        return not_found(e)

    return _history_response(session.id, history, status_code=201)


async def get_history(request):
    """Get a session's ordered history."""
    session_id = request.path_params["session_id"]
    bind_request_context(session_id=session_id)
    tracker = SessionTracker(_db_path(request))
    try:
        history = tracker.get_history(session_id)
    except UnknownReferenceError as e:
        return not_found(e)

    return _history_response(session_id, history)


async def get_comparison(request):
    """Compare a session's latest revision against the document before it."""
    session_id = request.path_params["session_id"]
    bind_request_context(session_id=session_id)
    tracker = SessionTracker(_db_path(request))
    try:
        comparison = tracker.compare_latest(session_id)
    except UnknownReferenceError as e:
        return not_found(e)
    except SessionComparisonError as e:
        return error_response(409, "no_revision", str(e))

    return JSONResponse(ComparisonResponse(comparison=comparison).model_dump(mode="json"))


async def get_progress(request):
    """Issue counts of a session's first document against its latest."""
    session_id = request.path_params["session_id"]
    bind_request_context(session_id=session_id)
    tracker = SessionTracker(_db_path(request))
    try:
        progress = tracker.compliance_progress(session_id)
    except UnknownReferenceError as e:
        return not_found(e)

    return JSONResponse(ProgressResponse(progress=progress).model_dump(mode="json"))


routes = [
    Route("/api/analyses", post_analysis, methods=["POST"]),
    Route("/api/analyses/select-category", post_select_category, methods=["POST"]),
    Route("/api/analyses/{analysis_id}", get_analysis),
    Route("/api/analyses/{analysis_id}/categories", get_category_options),
    Route("/api/analyses/{analysis_id}/iterations", post_followup, methods=["POST"]),
    Route("/api/compare", post_compare, methods=["POST"]),
    Route("/api/sessions", post_session, methods=["POST"]),
    Route("/api/sessions/{session_id}/iterations", post_iteration, methods=["POST"]),
    Route("/api/sessions/{session_id}/history", get_history),
    Route("/api/sessions/{session_id}/comparison", get_comparison),
    Route("/api/sessions/{session_id}/progress", get_progress),
]
