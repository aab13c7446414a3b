"""
Backend Scripts Module

Available scripts:
    - seed_data.py: Publishes a sample two-version workflow with users and tasks
    - validate_workflow.py: Decodes a stored workflow version and prints its graph

Usage:
    python -m scripts.seed_data
    python -m scripts.validate_workflow WF-xxxx --version 2
"""
