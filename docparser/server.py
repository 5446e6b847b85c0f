"""
HTTP front end: one request, one document.

    POST /parse   {"id": "d1", "text": "Cats run."}
    GET  /health

Nothing is written to disk in this mode; the annotations are returned
to the caller.
"""

# License: BSD3

import sys
from typing import List

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from docparser.annotation import Document
from docparser.pipeline import Pipeline
from docparser.sink import FailureLog, NullSink


class ParseRequest(BaseModel):
    id: str = Field('', description='document id')
    text: str = Field(..., description='document text')


class SentenceModel(BaseModel):
    sentence: str
    tokens: List[str]
    lemmas: List[str]
    pos_tags: List[str]
    ner_tags: List[str]
    offsets: List[int]
    dep_labels: List[str]
    dep_heads: List[int]


class ParseResponse(BaseModel):
    id: str
    sentences: List[SentenceModel]


class ErrorResponse(BaseModel):
    error_type: str
    message: str


def create_app(engine, failures=None):
    """
    FastAPI application around an annotation engine

    Parameters
    ----------
    engine : AnnotationEngine
        Shared by all requests; it must not keep per-document state
    failures : FailureLog, optional
        Where failed requests are reported (default: stderr)
    """
    pipeline = Pipeline(engine, NullSink(),
                        failures=failures or FailureLog(),
                        verbose=False)
    app = FastAPI(title='docparser', version='0.1')

    @app.post('/parse', response_model=ParseResponse,
              responses={500: {'model': ErrorResponse}})
    def parse(req: ParseRequest):
        """
        Annotate a single document
        """
        outcome = pipeline.process(Document(req.id, req.text))
        if not outcome.ok:
            pipeline.failures.report(req.id, outcome.trace)
            return JSONResponse(
                status_code=500,
                content={'error_type': 'annotation_error',
                         'message': str(outcome.error)})
        pipeline.sink.write_result(outcome.result)
        return outcome.result.to_dict()

    @app.get('/health')
    def health():
        return {'status': 'ok'}

    return app


def serve(engine, port, host='0.0.0.0'):
    """
    Run the HTTP service until interrupted
    """
    print('Listening on port %d...' % port, file=sys.stderr)
    uvicorn.run(create_app(engine), host=host, port=port)
