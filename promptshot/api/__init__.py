"""
PromptShot API Module

FastAPI presentation boundary over a single workflow session.
"""
