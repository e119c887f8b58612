"""
Input validation utilities for CLI commands
"""

from typing import List, Optional, Tuple

from rich.console import Console

MAX_QUERY_LENGTH = 2000


def validate_query(query: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a search query

    Returns:
        (is_valid, error_message)
    """
    if not query or not query.strip():
        return False, "Query cannot be empty"

    if len(query) > MAX_QUERY_LENGTH:
        return False, f"Query too long (max {MAX_QUERY_LENGTH} characters)"

    return True, None


def validate_limit(limit: int, maximum: int = 100) -> Tuple[bool, Optional[str]]:
    """
    Validate a result limit

    Returns:
        (is_valid, error_message)
    """
    if limit < 1:
        return False, "Limit must be at least 1"

    if limit > maximum:
        return False, f"Limit cannot exceed {maximum}"

    return True, None


def validate_threshold(threshold: float) -> Tuple[bool, Optional[str]]:
    """
    Validate a similarity threshold

    Returns:
        (is_valid, error_message)
    """
    if not 0.0 <= threshold <= 1.0:
        return False, "Threshold must be between 0 and 1"

    return True, None


def validate_search_options(
    query: str, limit: Optional[int], threshold: Optional[float], max_limit: int = 100
) -> Optional[str]:
    """First validation error among the search options, or None"""
    checks = [validate_query(query)]
    if limit is not None:
        checks.append(validate_limit(limit, max_limit))
    if threshold is not None:
        checks.append(validate_threshold(threshold))

    for is_valid, error in checks:
        if not is_valid:
            return error
    return None


def show_validation_error(
    console: Console, error_message: str, suggestions: Optional[List[str]] = None
) -> None:
    """
    Display validation error with helpful suggestions
    """
    console.print(f"[red]Validation Error:[/red] {error_message}")

    if suggestions:
        console.print("\n[yellow]Suggestions:[/yellow]")
        for suggestion in suggestions:
            console.print(f"  • {suggestion}")
