"""
HTTP API: FastAPI app and wallet score router.
"""
