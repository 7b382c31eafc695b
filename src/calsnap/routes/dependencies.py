from fastapi import Request

from calsnap.oracle.client import OracleClient
from calsnap.pipeline import EventExtractionPipeline


def get_pipeline(request: Request) -> EventExtractionPipeline:
    return request.app.state.pipeline


def get_oracle(request: Request) -> OracleClient:
    return request.app.state.pipeline.oracle
