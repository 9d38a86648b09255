from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..credentials import CredentialSession, get_credentials

router = APIRouter(prefix="/credentials", tags=["credentials"])


class KeySelection(BaseModel):
	api_key: str


@router.get("")
async def credential_status(credentials: CredentialSession = Depends(get_credentials)):
	return {"has_credential": credentials.has_credential()}


@router.post("")
async def select_key(req: KeySelection, credentials: CredentialSession = Depends(get_credentials)):
	async def _selector():
		return req.api_key

	await credentials.request_credential_selection(_selector)
	if not credentials.has_credential():
		raise HTTPException(status_code=400, detail="api_key is required")
	return {"has_credential": True}
