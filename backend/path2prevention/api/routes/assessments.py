"""Assessment routes: store completed risk assessments."""

from core.logging import logger
from db.session import get_db
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from models.assessments import AssessmentResult
from schemas.assessments import AssessmentCreate, AssessmentResponse
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/assessments", tags=["assessments"])


@router.post("", response_model=AssessmentResponse, status_code=201)
async def create_assessment(
    request: AssessmentCreate,
    db: AsyncSession = Depends(get_db),
):
    """Persist an assessment result and return the stored record."""

    try:
        assessment = AssessmentResult(**request.model_dump())
        db.add(assessment)
        await db.commit()
        await db.refresh(assessment)
        logger.info(
            "Stored assessment id={} session={} risk={}",
            assessment.id,
            assessment.session_id,
            assessment.risk_level,
        )
        return assessment
    except Exception as error:
        logger.exception("Error storing assessment for session {}", request.session_id)
        return JSONResponse(
            status_code=500,
            content={"message": "Error storing assessment", "error": str(error)},
        )
