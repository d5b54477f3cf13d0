#!/usr/bin/env python3

#============================================

class BeamerError(RuntimeError):
	"""Base class for every fatal conversion error."""

#============================================

class InputError(BeamerError):
	"""Document missing, locked, or a page could not be read."""

#============================================

class MediaError(BeamerError):
	"""Overlay media could not be resolved or probed."""

#============================================

class FilesystemError(BeamerError):
	"""Output directory or file could not be created or written."""

#============================================

class ValidationError(BeamerError):
	"""Timeline input that would produce an invalid track layout."""

#============================================

class ConfigError(BeamerError):
	"""Malformed configuration file or command-line override."""
