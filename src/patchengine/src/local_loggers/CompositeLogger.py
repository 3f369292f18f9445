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

""" Composite Logger - Manages diverting different kinds of output to the right sinks for them with consistent formatting.  """
import sys
from patchengine.src.bootstrap.Constants import Constants


class CompositeLogger(object):
    class MessageFormatType(object):
        """ Keys represent standard formats used. Values are representational only - non-functional. """
        INDENTED_MULTI_LINE = "\n\tx \n\ty \n\tz"
        PIPED_MULTI_LINE = "\n| x\n| y\n| z"

    def __init__(self, env_layer=None, file_logger=None, syslog_logger=None, current_env=None):
        self.env_layer = env_layer
        self.file_logger = file_logger
        self.syslog_logger = syslog_logger
        self.current_env = current_env

    # region Public Methods
    def log(self, message):
        """ Log an info message """
        self.__log(message, prefix=None)
        if self.syslog_logger is not None:
            self.syslog_logger.info(message)

    def log_error(self, message):
        """ Logs an error """
        self.__log(message, prefix="ERROR:")
        if self.syslog_logger is not None:
            self.syslog_logger.error(message)

    def log_warning(self, message):
        """ Logs a warning """
        self.__log(message, prefix="WARNING:")
        if self.syslog_logger is not None:
            self.syslog_logger.warning(message)

    def log_debug(self, message):
        """ Logs debugging data """
        self.__log(message, prefix=None)

    def log_verbose(self, message):
        """ Logs optional debugging data (local file only) """
        self.__file_logger_write(message, prefix="Verbose")
    # endregion Public Methods

    # region Private Methods
    def __log(self, message, prefix=None):
        """ Log an info message, and is also delegated handling error, warning and debug messages. """
        if self.current_env in (Constants.ExecEnv.DEV, Constants.ExecEnv.TEST):
            self.__console_write(message, prefix)

        self.__file_logger_write(message, prefix)

    def __console_write(self, message, prefix):
        """ Writes logs to standard error. Standard output is reserved for the run report. """
        print(self.__message_format(message, include_timestamp=False, prefix=prefix, format_type=self.MessageFormatType.INDENTED_MULTI_LINE), file=sys.stderr)

    def __file_logger_write(self, message, prefix):
        """ Writes logs to file when possible """
        """ Format: timestamp> [Prefix-if-any] Non-indented single line or Piped multi-line string """
        if self.file_logger is not None:
            message = self.__message_format(message, include_timestamp=True, prefix=prefix, format_type=self.MessageFormatType.PIPED_MULTI_LINE)
            self.file_logger.write("\n" + message)

    def __message_format(self, message, include_timestamp=True, prefix=None, format_type=None):
        """" Helps format the message for the desired logging sink """
        message = str(message)
        if format_type == self.MessageFormatType.INDENTED_MULTI_LINE:
            message = ("\n" if message.startswith("\n") or "\n" in message.strip() else "") + ("\t" if ("\n" in message.strip()) else "") + ("\n\t".join(message.strip().splitlines())).strip()
        elif format_type == self.MessageFormatType.PIPED_MULTI_LINE:
            message = ("\n" if message.startswith("\n") or "\n" in message.strip() else "") + ("| " if ("\n" in message.strip()) else "") + ("\n| ".join(message.strip().splitlines())).strip()

        timestamp = self.env_layer.datetime.timestamp() if include_timestamp and self.env_layer is not None else None
        message = "{0}{1}{2}".format(str(timestamp) + "> " if timestamp is not None else "",
                                     "[" + prefix + "] " if prefix is not None else "",
                                     message)
        return message
    # endregion Private Methods
