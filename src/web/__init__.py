"""
Web presentation layer (FastAPI).
"""
