"""
Test suite for memoire application.

This module contains all test cases for the application:
- Unit tests for models and services
- UI handler and component tests with Streamlit mocked out
"""
