from pydantic import BaseModel, ConfigDict, field_validator


class SignedPayload(BaseModel):
    apiKey: str
    timestamp: int
    signature: str


class UploadRequest(BaseModel):
    model_config = ConfigDict(strict=True)

    designId: str
    fileName: str
    fileData: str

    @field_validator("designId", "fileName", "fileData")
    @classmethod
    def _not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v


class UpstreamUploadPayload(SignedPayload):
    """Body sent to the PitchPrint upload endpoint: signature fields first, then the file."""
    designId: str
    fileName: str
    fileData: str


class ErrorResp(BaseModel):
    error: str
