from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import Field
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import get_current_user, get_identity, require_user
from .auth.identity import AuthResult, IdentityService
from .auth.models import EmailPasswordRequest, ProviderSignInRequest
from .cafes.catalog import cafes_near, filter_cafes
from .cafes.config import DEFAULT_GEOLOCATION_CONFIG, DEFAULT_PLACES_CONFIG
from .cafes.geolocation import (
    UNSUPPORTED,
    LocationReport,
    LocationResult,
    PositionAttempt,
    ReportedPositionSource,
    locate,
)
from .cafes.map_view import MarkerPlan, render_cafe_map
from .cafes.matching import classify, rank_cafes
from .cafes.models import Cafe, NearbyResponse, PlacesSearchResponse
from .cafes.places import get_places_client, search_by_text, search_nearby
from .cafes.seed import SEED_CAFES, VIBE_TAGS
from .config import DEFAULT_APP_CONFIG, configure_logging, missing_settings
from .errors import GENERIC_ERROR_MESSAGE, BeanThereError
from .favorites.models import FavoriteCafe, FavoriteRequest, FavoriteStatus
from .favorites.store import get_favorites
from .models import CamelModel, Coordinates
from .preferences.client_store import ClientStore, get_client_store, resolve_display_name
from .preferences.models import (
    COFFEE_TYPES,
    FLAVOR_OPTIONS,
    MILK_OPTIONS,
    VIBE_OPTIONS,
    DisplayNameRequest,
    UserPreferences,
)
from .profile.models import ProfileUpdate, UserProfile
from .profile.service import (
    create_user_profile,
    get_user_profile,
    update_user_profile,
    upload_profile_picture,
)
from .reviews.models import CafeRating, Review, ReviewSubmission, ReviewUpdate, TasteProfile
from .reviews.store import get_review_store
from .reviews.taste import build_taste_profile

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="BeanThere API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_APP_CONFIG.session_secret)

SUPPORT_URL = "https://www.buymeacoffee.com/yusifim"


class MapRequest(CamelModel):
    center: Coordinates
    cafes: list[Cafe] = Field(default_factory=list)
    user_location: Coordinates | None = None
    zoom: int | None = None


# ── Error handling ───────────────────────────────────────────────────────


@app.exception_handler(BeanThereError)
def beanthere_error(request: Request, exc: BeanThereError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "unexpected", "message": GENERIC_ERROR_MESSAGE, "action": "reload"},
    )


def _auth_response(result: AuthResult) -> AuthResult | JSONResponse:
    if result.success:
        return result
    return JSONResponse(status_code=401, content=result.model_dump())


def _ensure_profile(user: dict) -> UserProfile:
    return get_user_profile(user["uid"]) or create_user_profile(user)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/setup")
def setup() -> dict:
    missing = missing_settings()
    return {"configured": not missing, "missing": missing}


@app.get("/signin")
def signin_page(request: Request):
    if get_current_user(request):
        return RedirectResponse("/", status_code=303)
    return {"page": "signin", "providers": ["google", "password"]}


@app.get("/about")
def about() -> dict:
    return {
        "page": "about",
        "title": "About BeanThere",
        "summary": "A curated guide to the Bay Area's best coffee experiences.",
        "features": [
            "Filtering by vibe and atmosphere",
            "Location-based search",
            "Recommendations matched to your taste",
            "Reviews and favorites",
        ],
    }


@app.get("/support")
def support() -> dict:
    return {
        "page": "support",
        "title": "Support BeanThere",
        "supportUrl": SUPPORT_URL,
    }


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/signin", response_model=AuthResult)
def signin(body: EmailPasswordRequest, identity: IdentityService = Depends(get_identity)):
    return _auth_response(identity.sign_in_with_email(body.email, body.password))


@app.post("/auth/signup", response_model=AuthResult)
def signup(body: EmailPasswordRequest, identity: IdentityService = Depends(get_identity)):
    return _auth_response(identity.sign_up_with_email(body.email, body.password))


@app.post("/auth/provider", response_model=AuthResult)
def provider_signin(body: ProviderSignInRequest, identity: IdentityService = Depends(get_identity)):
    return _auth_response(identity.sign_in_with_provider(body.id_token))


@app.post("/auth/signout", response_model=AuthResult)
def signout(identity: IdentityService = Depends(get_identity)):
    return _auth_response(identity.sign_out())


@app.post("/auth/verification", response_model=AuthResult)
def resend_verification(identity: IdentityService = Depends(get_identity)):
    return _auth_response(identity.resend_verification_email())


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Preferences and display name ─────────────────────────────────────────


@app.get("/preferences")
def get_preferences(store: ClientStore = Depends(get_client_store)) -> dict:
    preferences = store.get_preferences()
    return {
        "completed": preferences is not None,
        "preferences": preferences.model_dump(by_alias=True) if preferences else None,
    }


@app.put("/preferences", response_model=UserPreferences)
def save_preferences(body: UserPreferences, store: ClientStore = Depends(get_client_store)) -> UserPreferences:
    store.save_preferences(body)
    return body


@app.delete("/preferences")
def retake_quiz(store: ClientStore = Depends(get_client_store)) -> dict:
    store.clear_preferences()
    return {"completed": False}


@app.put("/profile/name")
def set_display_name(body: DisplayNameRequest, store: ClientStore = Depends(get_client_store)) -> dict:
    store.set_user_name(body.name)
    return {"userName": body.name}


# ── Discovery ────────────────────────────────────────────────────────────


@app.get("/")
def home(
    request: Request,
    tags: list[str] = Query(default=[]),
    q: str = "",
    store: ClientStore = Depends(get_client_store),
) -> dict:
    preferences = store.get_preferences()
    if preferences is None:
        return {
            "onboarding": True,
            "options": {
                "coffeeTypes": COFFEE_TYPES,
                "vibe": VIBE_OPTIONS,
                "budget": ["budget", "moderate", "premium"],
                "favoriteFlavor": FLAVOR_OPTIONS,
                "milkType": MILK_OPTIONS,
            },
        }

    cafes = filter_cafes(SEED_CAFES, tags, q)
    return {
        "onboarding": False,
        "userName": resolve_display_name(store, get_current_user(request)),
        "needsName": store.get_user_name() is None,
        "preferences": preferences.model_dump(by_alias=True),
        "vibeTags": VIBE_TAGS,
        "cafes": [c.model_dump(by_alias=True) for c in cafes],
    }


@app.get("/cafes/nearby", response_model=NearbyResponse)
def nearby_seed_cafes(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
) -> NearbyResponse:
    return cafes_near(
        SEED_CAFES,
        Coordinates(lat=lat, lng=lng),
        DEFAULT_GEOLOCATION_CONFIG.nearby_radius_miles,
    )


@app.post("/location", response_model=LocationResult)
def resolve_location(body: LocationReport) -> LocationResult:
    return locate(ReportedPositionSource(body))


def _report_from_query(lat: float | None, lng: float | None, geo_error: int | None) -> LocationReport:
    if lat is not None and lng is not None:
        return LocationReport(high_accuracy=PositionAttempt(coordinates=Coordinates(lat=lat, lng=lng)))
    if geo_error == UNSUPPORTED:
        return LocationReport(supported=False)
    return LocationReport(high_accuracy=PositionAttempt(error_code=geo_error))


@app.get("/explore")
def explore(
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    geo_error: int | None = Query(default=None, alias="geoError"),
    store: ClientStore = Depends(get_client_store),
):
    preferences = store.get_preferences()
    if preferences is None:
        return RedirectResponse("/", status_code=303)

    located = locate(ReportedPositionSource(_report_from_query(lat, lng, geo_error)))
    cafes = search_nearby(get_places_client(), located.location, preferences)
    ranked = rank_cafes(cafes, preferences)
    recommended, other = classify(ranked)

    plan = MarkerPlan()
    render_cafe_map(
        plan,
        located.location,
        ranked,
        user_location=None if located.is_default else located.location,
    )
    return {
        "location": located.model_dump(by_alias=True),
        "recommended": [c.model_dump(by_alias=True) for c in recommended],
        "other": [c.model_dump(by_alias=True) for c in other],
        "map": plan.model_dump(by_alias=True),
    }


@app.get("/places/search", response_model=PlacesSearchResponse)
def places_search(
    q: str = "",
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
) -> PlacesSearchResponse:
    center = Coordinates(lat=lat, lng=lng) if lat is not None and lng is not None else None
    cafes = search_by_text(get_places_client(), q, center)
    if cafes:
        message = f'Found {len(cafes)} coffee shops matching "{q.strip()}"!'
    else:
        message = f'No coffee shops found matching "{q.strip()}". Try a different search term.'
    first = next((c.coordinates for c in cafes if c.coordinates), None)
    return PlacesSearchResponse(
        cafes=cafes,
        center=first or center or Coordinates(lat=DEFAULT_PLACES_CONFIG.default_lat, lng=DEFAULT_PLACES_CONFIG.default_lng),
        message=message,
    )


@app.post("/map", response_model=MarkerPlan)
def plan_map(body: MapRequest) -> MarkerPlan:
    plan = MarkerPlan()
    render_cafe_map(plan, body.center, body.cafes, body.user_location, body.zoom)
    return plan


# ── Reviews ──────────────────────────────────────────────────────────────


@app.get("/cafes/{cafe_id}/reviews", response_model=list[Review])
def cafe_reviews(cafe_id: str) -> list[Review]:
    return get_review_store().list_for_cafe(cafe_id)


@app.get("/cafes/{cafe_id}/rating", response_model=CafeRating)
def cafe_rating(cafe_id: str) -> CafeRating:
    return get_review_store().get_cafe_rating(cafe_id)


@app.post("/cafes/{cafe_id}/reviews", response_model=Review)
def submit_review(
    cafe_id: str,
    body: ReviewSubmission,
    user: dict = Depends(require_user),
    store: ClientStore = Depends(get_client_store),
) -> Review:
    user_name = resolve_display_name(store, user, fallback="Anonymous")
    return get_review_store().submit(user["uid"], user_name, cafe_id, body)


@app.patch("/reviews/{review_id}", response_model=Review)
def edit_review(review_id: str, body: ReviewUpdate, user: dict = Depends(require_user)) -> Review:
    return get_review_store().apply_update(review_id, user["uid"], body)


@app.delete("/reviews/{review_id}")
def delete_review(review_id: str, user: dict = Depends(require_user)) -> dict:
    get_review_store().delete(review_id, user_id=user["uid"])
    return {"status": "deleted", "id": review_id}


# ── Favorites ────────────────────────────────────────────────────────────


@app.get("/favorites", response_model=list[FavoriteCafe])
def list_favorites(refresh: bool = False, user: dict = Depends(require_user)) -> list[FavoriteCafe]:
    favorites = get_favorites(user["uid"])
    if refresh:
        favorites.refresh()
    return favorites.favorites


@app.get("/favorites/{cafe_id}/status", response_model=FavoriteStatus)
def favorite_status(cafe_id: str, user: dict = Depends(require_user)) -> FavoriteStatus:
    return FavoriteStatus(cafe_id=cafe_id, is_favorite=get_favorites(user["uid"]).is_favorite(cafe_id))


@app.post("/favorites", response_model=FavoriteCafe)
def add_favorite(body: FavoriteRequest, user: dict = Depends(require_user)) -> FavoriteCafe:
    return get_favorites(user["uid"]).add(body.cafe_id, body.cafe_name, body.cafe_address)


@app.delete("/favorites/{favorite_id}")
def remove_favorite(favorite_id: str, user: dict = Depends(require_user)) -> dict:
    get_favorites(user["uid"]).remove(favorite_id)
    return {"status": "removed", "id": favorite_id}


# ── Account dashboard ────────────────────────────────────────────────────


@app.get("/account")
def account(request: Request, store: ClientStore = Depends(get_client_store)):
    user = get_current_user(request)
    if not user:
        return RedirectResponse("/signin", status_code=303)
    profile = _ensure_profile(user)
    reviews = get_review_store().list_for_user(user["uid"])
    return {
        "user": user,
        "displayName": resolve_display_name(store, user),
        "profile": profile.model_dump(by_alias=True),
        "reviews": [r.model_dump(by_alias=True) for r in reviews],
        "favorites": [f.model_dump(by_alias=True) for f in get_favorites(user["uid"]).favorites],
    }


@app.get("/account/taste", response_model=TasteProfile)
def taste_profile(user: dict = Depends(require_user)) -> TasteProfile:
    return build_taste_profile(get_review_store().list_for_user(user["uid"]))


@app.get("/profile", response_model=UserProfile)
def get_profile(user: dict = Depends(require_user)) -> UserProfile:
    return _ensure_profile(user)


@app.put("/profile", response_model=UserProfile)
def update_profile(
    body: ProfileUpdate,
    user: dict = Depends(require_user),
    identity: IdentityService = Depends(get_identity),
) -> UserProfile:
    _ensure_profile(user)
    if body.display_name:
        identity.update_profile(display_name=body.display_name)
    return update_user_profile(user["uid"], body)


@app.post("/profile/picture", response_model=UserProfile)
def profile_picture(
    file: UploadFile = File(...),
    user: dict = Depends(require_user),
    identity: IdentityService = Depends(get_identity),
) -> UserProfile:
    data = file.file.read()
    return upload_profile_picture(identity, data, file.content_type)
