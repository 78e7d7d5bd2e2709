"""
ChainSage HTTP API

FastAPI application exposing the question-answering proxy endpoint.
"""
