"""
Package: handlers
Description: FastAPI routers for enqueueing and inspecting deliveries.
"""
