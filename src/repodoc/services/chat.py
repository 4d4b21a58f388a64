"""
Context-aware question prompts.

A question is wrapped with as much context as the caller has: the project and
the file being looked at, the project alone, or nothing at all.
"""

import posixpath
from typing import Optional

FILE_CONTEXT_PROMPT = """Context: You are an assistant helping with the '{project}' project. The user is currently viewing the file '{name}' located at '{path}'.

User question: {question}

Please provide a helpful, detailed response about this specific file or the project in general. Focus on explaining the code, architecture, best practices, and any relevant insights. Be direct and factual without any thinking process."""

PROJECT_CONTEXT_PROMPT = """Context: You are an assistant helping with the '{project}' project.

User question: {question}

Please provide a helpful, detailed response about this project. If the user is asking about project structure, explain the typical structure of such projects and suggest they pick a specific file for more detailed analysis. If they are asking about code, suggest they ask again about a specific file. Be direct and factual without any thinking process."""

NO_CONTEXT_PROMPT = """User question: {question}

You are an assistant for code analysis. Please provide a helpful response. If the user is asking about project structure, explain that you need more context and suggest they extract a project or pick a specific file for detailed analysis. Be direct and factual without any thinking process."""


def build_chat_prompt(
    question: str, project_name: Optional[str] = None, file_path: Optional[str] = None
) -> str:
    """
    Wrap a question in the richest context available.

    A file path without a project name carries no usable context and is ignored.
    """
    if project_name and file_path:
        return FILE_CONTEXT_PROMPT.format(
            project=project_name,
            name=posixpath.basename(file_path),
            path=file_path,
            question=question,
        )
    if project_name:
        return PROJECT_CONTEXT_PROMPT.format(project=project_name, question=question)
    return NO_CONTEXT_PROMPT.format(question=question)
