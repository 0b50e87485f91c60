"""
Custom exceptions for kb-gaps with helpful error messages.
"""


class KbGapsError(Exception):
    """Base exception for kb-gaps errors."""

    def __init__(self, message: str, suggestion: str = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self):
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class WorkspaceNotFoundError(KbGapsError):
    """Workspace not found or not initialized."""

    def __init__(self, path: str = None):
        message = "Not in a kb-gaps workspace."
        if path:
            message = f"No kb-gaps workspace found at: {path}"

        suggestion = (
            "Initialize a new workspace with:\n"
            "  kb-gaps init <workspace-dir>\n\n"
            "Or navigate to an existing workspace directory."
        )
        super().__init__(message, suggestion)


class InputError(KbGapsError):
    """Errors in uploaded or supplied input data."""

    pass


class InputFileNotFoundError(InputError):
    """Input file not found."""

    def __init__(self, file_path: str):
        message = f"File not found: {file_path}"
        suggestion = (
            "Check that the file path is correct and the file exists:\n" f"  ls -l {file_path}"
        )
        super().__init__(message, suggestion)


class EmptyInputError(InputError):
    """Input contained no usable records."""

    def __init__(self, what: str = "rows"):
        message = f"No {what} found in input."
        suggestion = (
            "Make sure the export is not empty and that the first sheet/row "
            "holds the column headers (ConvID, Date/Time, Role, Message)."
        )
        super().__init__(message, suggestion)


class InvalidInputError(InputError):
    """Input structure could not be interpreted."""

    def __init__(self, error_details: str):
        message = f"Invalid input: {error_details}"
        suggestion = (
            "Input must be a list of records (CSV rows or JSON objects), "
            "one per exported chat message."
        )
        super().__init__(message, suggestion)


class MissingColumnsError(InputError):
    """Input file lacks required columns."""

    def __init__(self, missing: list[str], file_path: str = None):
        column_list = ", ".join(missing)
        message = f"Missing required column(s): {column_list}"
        if file_path:
            message = f"Missing required column(s) in {file_path}: {column_list}"

        suggestion = (
            "Expected columns:\n"
            "  - message exports: ConvID, Date/Time, Role, Message\n"
            "  - intent files:    ConvID, Date, Intent"
        )
        super().__init__(message, suggestion)


class ConfigurationError(KbGapsError):
    """Configuration file errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Configuration file is invalid."""

    def __init__(self, error_details: str):
        message = f"Invalid configuration: {error_details}"

        suggestion = (
            "Fix the kb-gaps.yaml file.\n"
            "You can regenerate the default configuration:\n"
            "  mv kb-gaps.yaml kb-gaps.yaml.backup\n"
            "  kb-gaps init .\n\n"
            "Then merge your settings back from the backup."
        )
        super().__init__(message, suggestion)


class InvalidCredentialError(ConfigurationError):
    """A credential is present but malformed."""

    def __init__(self, provider_name: str, details: str):
        message = f"Invalid {provider_name} credential: {details}"
        suggestion = (
            "Check the API key stored in the configured environment variable.\n"
            "Keys are usually copied with a leading or trailing space by mistake."
        )
        super().__init__(message, suggestion)


class LLMError(KbGapsError):
    """Errors related to LLM provider operations."""

    pass


class LLMProviderNotAvailableError(LLMError):
    """LLM provider not available (missing API key, etc.)."""

    def __init__(self, provider_name: str, api_key_env: str = None):
        message = f"LLM provider '{provider_name}' is not available."

        if api_key_env:
            suggestion = (
                f"Set the API key environment variable:\n"
                f"  export {api_key_env}=<your-api-key>\n\n"
                f"Or use demo mode for a dry run:\n"
                f"  Edit kb-gaps.yaml and set:\n"
                f"    llm:\n"
                f"      provider: mock"
            )
        else:
            suggestion = (
                "Check your kb-gaps.yaml configuration.\n"
                "Ensure the provider is correctly configured."
            )
        super().__init__(message, suggestion)


class LLMAPIError(LLMError):
    """LLM API call failed."""

    def __init__(self, provider_name: str, error_message: str, retry_count: int = 0):
        self.provider_name = provider_name
        self.error_message = error_message
        message = f"{provider_name} API call failed: {error_message}"

        if retry_count > 0:
            message += f" (after {retry_count} retries)"

        suggestion = (
            "This could be due to:\n"
            "  - Network connectivity issues\n"
            "  - API rate limiting\n"
            "  - Service outage\n\n"
            "Try:\n"
            "  1. Check your internet connection\n"
            "  2. Wait a few minutes and retry\n"
            "  3. Lower llm.batch_size in kb-gaps.yaml"
        )
        super().__init__(message, suggestion)


class LLMTransientError(LLMAPIError):
    """LLM API call failed in a way that may succeed on retry."""

    pass


class LLMPermissionError(LLMError):
    """The API key is not allowed to use the requested model."""

    def __init__(self, provider_name: str, details: str, status: int = None):
        self.status = status
        message = (
            f"{provider_name} API key permission error: your API key doesn't have "
            f"the necessary permissions to use this model. {details}"
        ).strip()

        suggestion = (
            "Retrying will not help until the credential is fixed.\n"
            "Try:\n"
            "  1. Create a key with access to the configured model\n"
            "  2. Or switch to a model your key can use:\n"
            "     kb-gaps extract --model <model>"
        )
        super().__init__(message, suggestion)


class LLMResponseParsingError(LLMError):
    """Failed to parse LLM response."""

    def __init__(self, error_details: str):
        message = f"Failed to parse LLM response: {error_details}"

        suggestion = (
            "The LLM returned an unexpected format.\n"
            "Try:\n"
            "  1. Re-run the extraction (LLM responses can vary)\n"
            "  2. Use a different model:\n"
            "     Edit kb-gaps.yaml and change llm.model"
        )
        super().__init__(message, suggestion)


class SearchError(KbGapsError):
    """Errors related to knowledge-base search."""

    pass


class SearchProviderNotAvailableError(SearchError):
    """Search provider not configured."""

    def __init__(self, provider_name: str, missing: str):
        message = f"Search provider '{provider_name}' is not available: missing {missing}."
        suggestion = (
            "Configure the index in kb-gaps.yaml:\n"
            "  search:\n"
            "    host: https://<index-host>\n"
            "    api_key_env: PINECONE_API_KEY\n\n"
            "Or set search.provider to 'mock' for demo mode."
        )
        super().__init__(message, suggestion)


class SearchAPIError(SearchError):
    """Every search protocol failed for a query."""

    def __init__(self, provider_name: str, error_message: str, status: int = None):
        self.status = status
        message = f"{provider_name} search failed: {error_message}"
        super().__init__(message)


class RetryableError(KbGapsError):
    """Error that should be retried."""

    def __init__(self, original_error: Exception, attempt: int, max_attempts: int):
        self.original_error = original_error
        self.attempt = attempt
        self.max_attempts = max_attempts

        message = f"Operation failed (attempt {attempt}/{max_attempts}): " f"{str(original_error)}"
        super().__init__(message)


def format_error_for_cli(error: Exception) -> str:
    """
    Format an exception for CLI display with helpful information.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, KbGapsError):
        output = f"[red]Error:[/red] {error.message}"
        if error.suggestion:
            output += f"\n\n[yellow]{error.suggestion}[/yellow]"
        return output
    else:
        return f"[red]Error:[/red] {str(error)}"
