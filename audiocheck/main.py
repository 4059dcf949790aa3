import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from audiocheck.analysis.pcm import InvalidAudioError, PCMAudio
from audiocheck.config import configure_logging, get_settings
from audiocheck.dispatch import KINDS, AnalysisDispatcher, AnalysisRequest
from audiocheck.loader import AudioDecodeError, load_pcm
from audiocheck.models import AnalyzeResponse, FileInfoModel, KindsResponse

logger = logging.getLogger("audiocheck")

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the analysis thread pool for the lifetime of the app."""
    app.state.dispatcher = AnalysisDispatcher(settings.max_workers)
    logger.info("[STARTUP] dispatcher ready with %d workers", app.state.dispatcher.max_workers)
    try:
        yield
    finally:
        app.state.dispatcher.shutdown()
        logger.info("[SHUTDOWN] dispatcher stopped")


app = FastAPI(title="audiocheck analysis service", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    """Static liveness payload for uptime checks."""
    return {"status": "ok"}


@app.get("/kinds", response_model=KindsResponse)
async def kinds():
    return KindsResponse(kinds=list(KINDS))


@app.post("/analyze/{kind}", response_model=AnalyzeResponse)
async def analyze(
    http_request: Request,
    kind: str,
    file: UploadFile = File(...),
    bit_depth: Optional[int] = Form(None),
    header_sample_rate: Optional[int] = Form(None),
    request_id: Optional[str] = Form(None),
):
    """Decode the upload and run one analysis kind over it.

    `bit_depth` and `header_sample_rate` override what the decoder reports,
    for callers that parsed the container themselves.
    """

    if kind not in KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown analysis kind: {kind}")

    try:
        pcm, fmt = load_pcm(file.file, bit_depth=bit_depth)
    except (AudioDecodeError, InvalidAudioError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if header_sample_rate:
        pcm = PCMAudio(
            channels=pcm.channels,
            sample_rate=pcm.sample_rate,
            bit_depth=pcm.bit_depth,
            header_sample_rate=header_sample_rate,
        )

    analysis_request = AnalysisRequest(kind=kind, pcm=pcm)
    if request_id:
        analysis_request = AnalysisRequest(kind=kind, pcm=pcm, id=request_id)
    dispatcher = http_request.app.state.dispatcher
    response = await asyncio.wrap_future(dispatcher.submit(analysis_request))

    payload = response.to_dict(json_safe=True)
    payload["file"] = FileInfoModel(
        container=fmt.container,
        subtype=fmt.subtype,
        bit_depth=pcm.bit_depth,
        sample_rate=pcm.sample_rate,
        channels=pcm.num_channels,
        duration=pcm.duration,
    )
    return AnalyzeResponse(**payload)
