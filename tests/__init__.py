"""
Test suite for the MedBook appointment service.

Contains unit and integration tests for the appointment lifecycle,
availability rules and HTTP layer.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
