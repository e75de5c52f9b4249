"""Core domain package for textgo.

Core contains recognition, matching, execution and registry logic without
any UI, OS or network specific code, keeping the business logic portable.
"""
