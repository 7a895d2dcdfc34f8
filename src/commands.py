#!/usr/bin/env python3
# commands.py - Asynchronous access to the backend command surface
#
# Every backend command runs in its own daemon thread so that file access
# never blocks the GTK main loop. The result (or the error message) is handed
# back to the main loop with GLib.idle_add, so callbacks always run on the UI
# thread and never interleave with each other.

import logging
import threading

from backend import BackendError

logger = logging.getLogger(__name__)

COMMANDS = (
    'load',
    'save',
    'validate',
    'explore',
    'info',
    'import_file',
    'export_file',
    'load_config',
    'save_config',
    'import_config',
    'export_config',
    'get_system_fonts',
)


class CommandRunner:
    """
    Runs backend commands off the UI thread.

    Callbacks:
        on_success(result) is called with the command's return value.
        on_error(message) is called with a user-presentable message.
    Neither is called more than once, and a command cannot be cancelled once
    submitted.
    """

    def __init__(self, backend, dispatch=None, threaded=True):
        """
        Args:
            backend: Object implementing the backend commands (LocalBackend)
            dispatch: Callable scheduling a function on the UI thread.
                      Defaults to GLib.idle_add.
            threaded: Run commands in worker threads. When False the command
                      runs inline in the caller's thread.
        """
        if dispatch is None:
            from gi.repository import GLib
            dispatch = GLib.idle_add
        self._backend = backend
        self._dispatch = dispatch
        self._threaded = threaded

    def submit(self, command, *args, on_success=None, on_error=None):
        """
        Start a backend command.

        Args:
            command: One of COMMANDS
            *args: Positional arguments for the command

        Returns:
            threading.Thread or None: The worker thread when threaded
        """
        if command not in COMMANDS:
            raise ValueError(f'Unknown backend command: {command}')
        handler = getattr(self._backend, command)
        logger.debug(f'Submitting command "{command}"')

        if not self._threaded:
            self._run(command, handler, args, on_success, on_error)
            return None

        thread = threading.Thread(
            target=self._run,
            args=(command, handler, args, on_success, on_error),
            name=f'command-{command}',
            daemon=True)
        thread.start()
        return thread

    def _run(self, command, handler, args, on_success, on_error):
        try:
            result = handler(*args)
        except BackendError as e:
            logger.error(f'Command "{command}" failed: {e}')
            self._deliver(on_error, str(e))
            return
        except Exception as e:
            logger.exception(f'Command "{command}" raised an unexpected error')
            self._deliver(on_error, str(e) or e.__class__.__name__)
            return
        self._deliver(on_success, result)

    def _deliver(self, callback, value):
        if callback is None:
            return

        def invoke():
            callback(value)
            return False  # run once

        self._dispatch(invoke)
