from fastapi.responses import JSONResponse

from auto_appraisal.models.results import ActionResult


def action_response(result: ActionResult, ok_status: int = 200, error_status: int = 400) -> JSONResponse:
    """ok -> ok_status, waiting on confirmation -> 409, anything else -> error_status"""
    if result.ok:
        status = ok_status
    elif result.confirm is not None:
        status = 409
    else:
        status = error_status
    return JSONResponse(status_code=status, content=result.model_dump(mode="json"))
