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
import os
import sys


class FileLogger(object):
    """Facilitates writing selected logs to the engine log file"""

    def __init__(self, env_layer, log_file):
        self.env_layer = env_layer
        self.log_file = log_file
        self.log_file_handle = None
        self.max_msg_size = 32 * 1024 * 1024
        try:
            log_folder = os.path.dirname(self.log_file)
            if log_folder and not os.path.isdir(log_folder):
                os.makedirs(log_folder)
            self.log_file_handle = self.env_layer.file_system.open(self.log_file, "a+")
        except Exception as error:
            # Never fatal: a patch run must still produce its report without a log file
            sys.stderr.write("FileLogger - Error opening '" + self.log_file + "': " + repr(error) + "\n")

    def __del__(self):
        self.close(message_at_close=None)

    def write(self, message, fail_silently=True):
        try:
            if len(message) > self.max_msg_size:
                message = self.__truncate_message(message=message, max_size=self.max_msg_size)
            if self.log_file_handle is not None:
                self.log_file_handle.write(message)
        except Exception as error:
            # DO NOT write any errors here to stdout
            if not fail_silently:
                raise Exception("Fatal exception trying to write to log file: " + repr(error) + ". Attempted message: " + str(message))

    def flush(self):
        if self.log_file_handle is not None:
            self.log_file_handle.flush()
            os.fsync(self.log_file_handle.fileno())

    def close(self, message_at_close='<Log file was closed.>'):
        if self.log_file_handle is not None:
            if message_at_close is not None:
                self.write(str(message_at_close))
            self.log_file_handle.close()
            self.log_file_handle = None     # Not having this can cause 'I/O exception on closed file' exceptions

    @staticmethod
    def __truncate_message(message, max_size):
        # type: (str, int) -> str
        """ Truncate message to a max size at the end of a line """
        truncated_message = message[:max_size]
        last_newline_index = truncated_message.rfind("\n")
        return truncated_message[:last_newline_index + 1] if last_newline_index != -1 else truncated_message
