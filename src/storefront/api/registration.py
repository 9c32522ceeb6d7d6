"""FastAPI endpoints for email-verified customer registration."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from storefront.api.schemas import StartRegistrationRequest, VerifyRegistrationRequest
from storefront.registration.management import StartRegistration, VerifyRegistration

registration_router = APIRouter(prefix="/auth/register", tags=["registration"])


@registration_router.post("", status_code=201)
async def start_registration(body: StartRegistrationRequest):
    result = current_domain.process(
        StartRegistration(email=body.email, name=body.name, password=body.password),
        asynchronous=False,
    )
    return {"success": True, "message": "Verification code sent", "data": result}


@registration_router.post("/verify")
async def verify_registration(body: VerifyRegistrationRequest):
    result = current_domain.process(VerifyRegistration(email=body.email, otp=body.otp), asynchronous=False)
    if not result["verified"]:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Invalid verification code",
                "errors": [{"field": "otp", "attempts_remaining": result["attempts_remaining"]}],
            },
        )
    # The password hash is never echoed back to clients
    return {"success": True, "message": "Email verified", "data": {"email": result["email"], "name": result["name"]}}
