"""
Test suite for the MediBook appointment service.

Contains unit tests for the scheduling rules and API tests for the
availability and appointment endpoints.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
