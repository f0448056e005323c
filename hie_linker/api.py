import logging
import os
from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from .errors import EhrApiError
from .linking import link_health_document
from .models import LinkRequest

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

LINKER_KEY = os.getenv("LINKER_API_KEY", "")
# HTTPBearer scheme so Swagger-UI can attach the Authorization header globally
auth_scheme = HTTPBearer(auto_error=False)

app = FastAPI(title="HIE Document Linking Service")

def verify_key(credentials: HTTPAuthorizationCredentials = Depends(auth_scheme)):
    """Validate Bearer token provided via Authorization header"""
    if credentials is None or credentials.scheme.lower() != "bearer" or credentials.credentials != LINKER_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")

@app.post("/link", dependencies=[Depends(verify_key)], response_model=bool)
async def link_document(
    req: LinkRequest,
    strict: bool = Query(False, description="Fail with an error instead of false when only the link step fails"),
):
    """Run the four-step linking flow for one document bundle."""
    try:
        return await link_health_document(req, strict_link=strict)
    except EhrApiError as err:
        raise HTTPException(status_code=err.status_code, detail=err.message) from err
