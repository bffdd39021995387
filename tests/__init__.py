"""
Test suite for the Medical Practice API.

Contains service-level and HTTP-level tests for the application's functionality.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
