"""Core gameplay primitives (transition engine, integrity tags, prompt context).

Kept free of FastAPI concerns so it can be reused by API routes, scripts and tests.
"""
