from pydantic import BaseModel


class InstitutionOut(BaseModel):
    address: str
    is_active: bool


class InstitutionIn(BaseModel):
    address: str
    name: str = ""


class OwnerOut(BaseModel):
    owner: str


class TxOut(BaseModel):
    tx_hash: str
