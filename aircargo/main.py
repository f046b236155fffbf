# aircargo/main.py

import logging
from datetime import date, datetime, timezone

from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from aircargo.auth.dependencies import get_current_user, get_optional_user
from aircargo.bookings.router import router as bookings_router
from aircargo.config import API_PREFIX, CORS_ORIGINS, ENVIRONMENT, VERSION, setup_logging
from aircargo.database import get_db, init_db
from aircargo.errors import CargoError, InvalidRoute, map_integrity_error
from aircargo.models.timestamps import utcnow
from aircargo.models.user import User
from aircargo.schemas.route import FlightSchema, TransitRouteSchema, ValidateSequenceRequest
from aircargo.schemas.user import LoginRequest, SignupRequest, UserResponse
from aircargo.services.auth import authenticate_user, register_user
from aircargo.services.route_finder import find_routes, validate_flight_sequence

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Air Cargo Booking & Tracking API", version=VERSION)


@app.on_event("startup")
def startup_event():
    init_db()
    logger.info("Air Cargo API ready (%s), base URL %s", ENVIRONMENT, API_PREFIX)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(bookings_router)


# ------------------------------------ Errors ------------------------------------------

def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _error_body(request: Request, code: str, message: str):
    return {"error": code, "message": message, "timestamp": _now_iso(), "path": request.url.path}


@app.exception_handler(CargoError)
async def cargo_error_handler(request: Request, exc: CargoError):
    return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.code, exc.message))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    mapped = map_integrity_error(exc)
    if mapped is None:
        logger.exception("Unmapped integrity error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=_error_body(request, "INTERNAL_ERROR", "Internal Server Error"))
    return JSONResponse(status_code=mapped.status_code, content=_error_body(request, mapped.code, mapped.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            status_code=404,
            content=_error_body(request, "NOT_FOUND", f"Route {request.method} {request.url.path} not found"),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail, "timestamp": _now_iso(), "path": request.url.path},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body(request, "INTERNAL_ERROR", "Internal Server Error"))


# ------------------------------------ Info endpoints ------------------------------------------

@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": _now_iso(), "version": VERSION, "environment": ENVIRONMENT}


@app.get(API_PREFIX)
async def api_root():
    return {
        "message": "Air Cargo Booking & Tracking API",
        "version": VERSION,
        "documentation": f"{API_PREFIX}/docs",
        "health": "/health",
    }


@app.get(f"{API_PREFIX}/docs")
async def api_docs():
    return {
        "name": "Air Cargo Booking & Tracking API",
        "version": VERSION,
        "endpoints": {
            "auth": {
                "POST /auth/signup": "Create an account",
                "POST /auth/login": "User login",
                "GET /auth/profile": "Get user profile (protected)",
                "GET /auth/validate": "Validate token",
            },
            "routes": {
                "GET /routes": "Search flight routes",
                "POST /routes/validate": "Validate flight sequence",
            },
            "bookings": {
                "POST /bookings": "Create new booking (protected)",
                "GET /bookings/my-bookings": "Get user bookings (protected)",
                "GET /bookings/:ref_id/history": "Get booking history",
                "PUT /bookings/:ref_id/depart": "Mark booking as departed (protected)",
                "PUT /bookings/:ref_id/arrive": "Mark booking as arrived (protected)",
                "PUT /bookings/:ref_id/deliver": "Mark booking as delivered (protected)",
                "PUT /bookings/:ref_id/cancel": "Cancel booking (protected)",
            },
        },
    }


# ------------------------------------ Auth endpoints ------------------------------------------

def _auth_payload(user: User, token: str):
    return {
        "user": {"id": user.id, "username": user.username, "email": user.email},
        "token": token,
        "expires_in": "24h",
    }


@app.post(f"{API_PREFIX}/auth/signup", status_code=201)
def signup(request: SignupRequest, db: Session = Depends(get_db)):
    user, token = register_user(db, request.username, request.email, request.password)
    return {"message": "Account created successfully", "data": _auth_payload(user, token)}


@app.post(f"{API_PREFIX}/auth/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    result = authenticate_user(db, request.email, request.password)
    if not result:
        raise HTTPException(401, "Invalid email or password")
    user, token = result
    return {"message": "Login successful", "data": _auth_payload(user, token)}


@app.get(f"{API_PREFIX}/auth/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    return {
        "message": "Profile retrieved successfully",
        "data": {"user": UserResponse.model_validate(current_user).model_dump(mode="json")},
    }


@app.get(f"{API_PREFIX}/auth/validate")
def validate_token(user=Depends(get_optional_user)):
    return {
        "message": "Token validation result",
        "data": {
            "valid": user is not None,
            "user": {"id": user.id, "username": user.username, "email": user.email} if user else None,
        },
    }


# ------------------------------------ Route endpoints ------------------------------------------

@app.get(f"{API_PREFIX}/routes")
def search_routes(
    origin: str = Query(..., min_length=3, max_length=3),
    destination: str = Query(..., min_length=3, max_length=3),
    departure_date: date = Query(..., description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
):
    origin, destination = origin.upper(), destination.upper()
    if origin == destination:
        raise InvalidRoute()
    if departure_date < utcnow().date():
        raise HTTPException(400, "Departure date cannot be in the past")

    routes = find_routes(db, origin, destination, departure_date)
    direct = [FlightSchema.model_validate(f).model_dump(mode="json") for f in routes.direct_flights]
    transit = [TransitRouteSchema.model_validate(r).model_dump(mode="json") for r in routes.transit_routes]

    return {
        "message": "Routes found successfully",
        "data": {
            "search_criteria": {
                "origin": origin,
                "destination": destination,
                "departure_date": departure_date.isoformat(),
            },
            "results": {
                "direct_flights": {"count": len(direct), "flights": direct},
                "transit_routes": {"count": len(transit), "routes": transit},
            },
            "total_options": routes.total_options,
        },
    }


@app.post(f"{API_PREFIX}/routes/validate")
def validate_sequence(request: ValidateSequenceRequest, db: Session = Depends(get_db)):
    flights = validate_flight_sequence(db, request.flight_ids)
    return {
        "message": "Flight sequence is valid",
        "data": {
            "valid": True,
            "flights": [FlightSchema.model_validate(f).model_dump(mode="json") for f in flights],
        },
    }
