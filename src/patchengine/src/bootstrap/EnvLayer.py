# Copyright 2020 Microsoft Corporation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# Requires Python 3.6+

import collections
import datetime
import os
import platform
import queue
import signal
import subprocess
import sys
import threading
import time
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import CommandTimeoutError

CommandOutcome = collections.namedtuple("CommandOutcome", ["exit_status", "combined_output", "duration"])


class EnvLayer(object):
    """ Environment related functions """

    def __init__(self):
        # Discrete components
        self.platform = self.Platform()
        self.datetime = self.DateTime()
        self.file_system = self.FileSystem()

        # Platform-fixed locations
        self.paths = Constants.WindowsPaths if self.platform.is_windows() else Constants.LinuxPaths

    # region - Command execution
    def run_command_output(self, cmd, no_output=False, chk_err=False):
        """ Runs a short command to completion. Returns exit code and merged stdout/stderr. """
        try:
            process = subprocess.Popen(cmd, shell=True, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, env=self.__get_child_environment())
            output, unused_err = process.communicate()
        except OSError as error:
            message = "Exception during cmd execution. [Exception={0}][Cmd={1}]".format(repr(error), str(cmd))
            print(message, file=sys.stderr)
            raise Exception(message)

        code = process.returncode
        if code != 0 and chk_err:
            print("Error: Command returned non-zero. [Code={0}][Cmd={1}]".format(str(code), str(cmd)), file=sys.stderr)

        return code, (None if no_output else self.__convert_process_output_to_text(output))

    def run_command_capture(self, cmd):
        """ Runs a command to completion keeping stdout and stderr apart. Returns exit code, stdout, stderr. """
        try:
            process = subprocess.Popen(cmd, shell=True, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=subprocess.PIPE, env=self.__get_child_environment())
            output, error_output = process.communicate()
        except OSError as error:
            raise Exception("Exception during cmd execution. [Exception={0}][Cmd={1}]".format(repr(error), str(cmd)))
        return process.returncode, self.__convert_process_output_to_text(output), self.__convert_process_output_to_text(error_output)

    def run_command_with_timeout(self, cmd, timeout, poll_interval=Constants.PATCH_POLL_INTERVAL_IN_SECS):
        # type: (str, int, float) -> CommandOutcome
        """ Runs a long command under a hard deadline, collecting merged output without blocking past the poll interval.
            Raises CommandTimeoutError with the output captured so far if the deadline passes. """
        start = time.time()
        process = subprocess.Popen(cmd, shell=True, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
                                   env=self.__get_child_environment(), **self.__get_process_group_kwargs())
        chunks = queue.Queue()
        reader = threading.Thread(target=self.__pump_output, args=(process.stdout, chunks))
        reader.daemon = True
        reader.start()

        output = []
        completed = False
        try:
            while not completed:
                remaining = timeout - (time.time() - start)
                if remaining <= 0:
                    break
                try:
                    chunk = chunks.get(timeout=min(poll_interval, remaining))
                except queue.Empty:
                    continue
                if chunk is None:
                    completed = True
                else:
                    output.append(chunk)

            exit_status = None
            if completed:
                # end of stream does not mean the child is gone; it may have closed or redirected its output
                try:
                    exit_status = process.wait(timeout=max(timeout - (time.time() - start), 0))
                except subprocess.TimeoutExpired:
                    exit_status = None

            if exit_status is None:
                self.__terminate_process(process)
                reader.join(poll_interval)
                output.extend(self.__drain(chunks))
                raise CommandTimeoutError(timeout, self.__convert_process_output_to_text(b"".join(output)))
        finally:
            if process.poll() is None:
                self.__terminate_process(process)
            if process.stdout is not None:
                process.stdout.close()

        return CommandOutcome(exit_status, self.__convert_process_output_to_text(b"".join(output)), time.time() - start)

    @staticmethod
    def __pump_output(stream, chunks):
        """ Reader thread body. Pushes fixed-size chunks and a None sentinel at end of stream. """
        try:
            for chunk in iter(lambda: os.read(stream.fileno(), Constants.BUFFER_SIZE), b""):
                chunks.put(chunk)
        except (OSError, ValueError):
            pass    # stream closed underneath the reader after termination
        finally:
            chunks.put(None)

    @staticmethod
    def __drain(chunks):
        drained = []
        while True:
            try:
                chunk = chunks.get_nowait()
            except queue.Empty:
                return drained
            if chunk is not None:
                drained.append(chunk)

    def __terminate_process(self, process):
        """ SIGTERM to the child's process group, escalating to kill if it does not go away. """
        if self.platform.is_windows():
            process.terminate()
        else:
            try:
                os.killpg(process.pid, signal.SIGTERM)
            except OSError:
                process.terminate()

        try:
            process.wait(Constants.PROCESS_TERMINATE_GRACE_IN_SECS)
        except subprocess.TimeoutExpired:
            if self.platform.is_windows():
                process.kill()
            else:
                try:
                    os.killpg(process.pid, signal.SIGKILL)
                except OSError:
                    process.kill()
            process.wait()

    def __get_process_group_kwargs(self):
        if self.platform.is_windows():
            return {'creationflags': getattr(subprocess, 'CREATE_NEW_PROCESS_GROUP', 0)}
        return {'start_new_session': True}

    def __get_child_environment(self):
        """ Package manager output is parsed, so non-Windows children run with the C locale. """
        environment = dict(os.environ)
        if not self.platform.is_windows():
            environment['LC_ALL'] = 'C'
        return environment

    @staticmethod
    def __convert_process_output_to_text(output):
        return output.decode('utf8', 'ignore') if output is not None else ''
    # endregion - Command execution

    # region - Process-level operations
    def reboot_machine(self, reboot_cmd):
        """ Launches the reboot command fully detached. Never waits on it. """
        if self.platform.is_windows():
            flags = getattr(subprocess, 'DETACHED_PROCESS', 0) | getattr(subprocess, 'CREATE_NEW_PROCESS_GROUP', 0)
            subprocess.Popen(reboot_cmd, shell=True, stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, creationflags=flags, close_fds=True)
        else:
            subprocess.Popen(reboot_cmd, shell=True, stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, start_new_session=True, close_fds=True)

    @staticmethod
    def read_stdin():
        return sys.stdin.read()

    @staticmethod
    def write_stdout(text):
        sys.stdout.write(text)
        sys.stdout.flush()

    @staticmethod
    def exit(code):
        sys.exit(code)
    # endregion - Process-level operations

# region - Platform emulation and extensions
    class Platform(object):
        @staticmethod
        def system():   # OS Type
            return platform.system()

        def is_windows(self):
            return self.system() == 'Windows'

        @staticmethod
        def node():     # machine name
            return platform.node()

        @staticmethod
        def expand_path(path_template, **kwargs):
            """ Fills Windows location placeholders from the process environment. """
            values = {
                'systemroot': os.environ.get('SYSTEMROOT', os.environ.get('systemroot', 'C:/Windows')),
                'programfiles': os.environ.get('PROGRAMFILES', os.environ.get('programfiles', 'C:/Program Files'))
            }
            values.update(kwargs)
            return path_template.format(**values)
# endregion - Platform emulation and extensions

# region - File system emulation and extensions
    class FileSystem(object):
        @staticmethod
        def open(file_path, mode, raise_if_not_found=True, encoding='utf-8'):
            """ Provides a file handle to the file_path requested with retries """
            for i in range(0, Constants.MAX_FILE_OPERATION_RETRY_COUNT):
                try:
                    return open(file_path, mode, encoding=encoding)
                except (IOError, OSError) as error:
                    if i < Constants.MAX_FILE_OPERATION_RETRY_COUNT - 1:
                        time.sleep(i + 1)
                    else:
                        error_message = "Unable to open file (retries exhausted). [File={0}][Error={1}][RaiseIfNotFound={2}].".format(str(file_path), repr(error), str(raise_if_not_found))
                        if raise_if_not_found:
                            raise Exception(error_message)
                        else:
                            print(error_message, file=sys.stderr)
                            return None

        def read_with_retry(self, file_path, raise_if_not_found=True, encoding='utf-8'):
            """ Reads all content from a given file path in a single operation """
            file_handle = self.open(file_path, 'r', raise_if_not_found, encoding)
            if file_handle is None:
                return None
            with file_handle:
                return file_handle.read()

        def write_with_retry(self, file_path, data, mode='a+'):
            """ Writes (appends by default) to a given file path in a single operation """
            directory = os.path.dirname(file_path)
            if directory and not os.path.isdir(directory):
                os.makedirs(directory)
            with self.open(file_path, mode) as file_handle:
                file_handle.write(str(data))

        @staticmethod
        def exists(file_path):
            return os.path.exists(file_path)

        @staticmethod
        def is_file(file_path):
            return os.path.isfile(file_path)

        @staticmethod
        def is_executable(file_path):
            return os.path.isfile(file_path) and os.access(file_path, os.X_OK)

        @staticmethod
        def delete(file_path):
            os.remove(file_path)
# endregion - File system emulation and extensions

# region - DateTime emulation and extensions
    class DateTime(object):
        @staticmethod
        def time():
            return time.time()

        @staticmethod
        def now():
            """ Timezone-aware local time """
            return datetime.datetime.now().astimezone()

        @staticmethod
        def timestamp():
            return datetime.datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")

        @staticmethod
        def iso8601(value):
            # type: (datetime.datetime) -> str
            return value.replace(microsecond=0).isoformat()

        @staticmethod
        def parse_local(value, format_string):
            """ Parses a naive local time string into an aware datetime in the local timezone """
            return datetime.datetime.strptime(value, format_string).astimezone()

        @staticmethod
        def total_seconds_from_time_delta(time_delta):
            return time_delta.total_seconds()
# endregion - DateTime emulation and extensions
