from __future__ import annotations


class BlueprintError(Exception):
	"""Base class for errors raised by the workbook service."""


class GenerationError(BlueprintError):
	"""A workbook could not be produced for the requested topic."""


class AuthInvalid(GenerationError):
	"""The API key is missing, rejected, or lacks permission for the model."""


class GenerationFailed(GenerationError):
	"""Any other generation failure: network, quota, empty or malformed body."""


class GenerationInProgress(BlueprintError):
	pass


class WorkbookNotReady(BlueprintError):
	pass
