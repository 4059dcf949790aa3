"""Pydantic response models for the HTTP service.

Result payloads are the JSON-safe `to_dict` form of the analysis records:
non-finite dB/LUFS values (the -inf "no signal" sentinel) appear as null.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class AnalysisResponseModel(BaseModel):
    id: str
    kind: str
    result: Optional[Dict[str, Any]] = None
    sub_results: Optional[Dict[str, Dict[str, Any]]] = None
    error: Optional[str] = None


class FileInfoModel(BaseModel):
    container: str
    subtype: str
    bit_depth: Optional[int] = None
    sample_rate: int
    channels: int
    duration: float


class AnalyzeResponse(AnalysisResponseModel):
    file: FileInfoModel


class KindsResponse(BaseModel):
    kinds: List[str]
