"""Interface for presenting results and messages to the user.

Allows different UI implementations (console, tests) behind the same
command handler.
"""

import abc
from typing import Any, Sequence


class UserInterface(abc.ABC):
    """Abstract Base Class for user-facing output."""

    @abc.abstractmethod
    def display_table(self, title: str, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        """Displays tabular results.

        Args:
            title: Table caption.
            columns: Column headers.
            rows: One sequence of cell values per row.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass
