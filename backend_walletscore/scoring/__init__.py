"""
Scoring: request/response schemas and the orchestrator that runs one scoring request.
"""
