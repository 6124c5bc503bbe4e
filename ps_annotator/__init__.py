"""PowerShell Function Annotator.

An LLM-powered tool that finds PowerShell function definitions and
inserts a generated description above each one using the Gemini API.
"""

__version__ = "0.1.0"
