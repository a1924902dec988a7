"""
Public comment endpoints - unauthenticated citizen comments on a report.
"""

from fastapi import APIRouter, Depends, status

from city_reporter.models.report import PublicCommentRequest
from city_reporter.services.comment_service import PublicCommentService, get_comment_service

router = APIRouter(prefix="/reports", tags=["Public Comments"])


@router.post("/{report_id}/public-comments", status_code=status.HTTP_201_CREATED)
async def add_public_comment(
    report_id: str,
    request: PublicCommentRequest,
    comments: PublicCommentService = Depends(get_comment_service)
):
    comment, report = comments.add_comment(report_id, request.name, request.email, request.text)
    location = report.get("location") or {}
    return {
        "success": True,
        "message": "Comment submitted successfully",
        "comment": comment,
        "total_comments": len(report.get("public_comments") or []),
        "report_info": {
            "id": report["id"],
            "city": location.get("city"),
            "district": location.get("district"),
            "province": location.get("province"),
            "description": (report.get("description") or "")[:100],
        },
    }


@router.get("/{report_id}/public-comments")
async def list_public_comments(report_id: str, comments: PublicCommentService = Depends(get_comment_service)):
    results = comments.list_comments(report_id)
    return {"success": True, "report_id": report_id, "total_comments": len(results), "comments": results}


@router.delete("/{report_id}/public-comments/{comment_id}")
async def delete_public_comment(
    report_id: str,
    comment_id: str,
    comments: PublicCommentService = Depends(get_comment_service)
):
    remaining = comments.delete_comment(report_id, comment_id)
    return {"success": True, "message": "Comment deleted successfully", "total_comments": remaining}
