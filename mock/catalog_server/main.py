from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pathlib import Path
import json
import os

app = FastAPI(title="Mock Qurban Catalog Server", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/catalog_stub") if os.path.exists("/catalog_stub") else Path(__file__).resolve().parents[1] / "catalog_stub"

@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/qurban/package-periods/{package_period_id}")
def get_package_period(package_period_id: str):
    packages = json.loads((DATA_DIR / "package_periods.json").read_text())
    if package_period_id not in packages:
        raise HTTPException(status_code=404, detail="package period not found")
    return JSONResponse(content={"data": packages[package_period_id]})

@app.get("/settings/public")
def get_public_settings():
    return JSONResponse(content={"data": json.loads((DATA_DIR / "settings.json").read_text())})
