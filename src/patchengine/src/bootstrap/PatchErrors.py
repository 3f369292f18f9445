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

""" Terminal errors raised by any layer of a patch run. Only the top level converts them into an error report. """
from patchengine.src.bootstrap.Constants import Constants


class PatchOperationError(Exception):
    """ A tagged, terminal error. Carries the taxonomy kind and the process exit code to report. """
    def __init__(self, message, kind, exit_code=Constants.ErrorCode.GENERIC):
        # type: (str, str, int) -> None
        super(PatchOperationError, self).__init__(message)
        self.message = str(message)
        self.kind = kind
        self.exit_code = self.sanitize_exit_code(exit_code)

    @staticmethod
    def sanitize_exit_code(exit_code):
        # type: (any) -> int
        """ Exit statuses from killed children can be None or negative; those collapse to the generic code. """
        try:
            exit_code = int(exit_code)
        except (TypeError, ValueError):
            return Constants.ErrorCode.GENERIC
        return exit_code if 0 < exit_code < 256 or exit_code in (Constants.ErrorCode.INPUT, Constants.ErrorCode.TIMEOUT) else Constants.ErrorCode.GENERIC

    def __repr__(self):
        return "PatchOperationError(kind={0}, exit_code={1}, message={2!r})".format(self.kind, self.exit_code, self.message)


class CommandTimeoutError(PatchOperationError):
    """ A child process ran past its deadline and was terminated. Keeps the output captured until then. """
    def __init__(self, timeout, output=""):
        # type: (int, str) -> None
        super(CommandTimeoutError, self).__init__("TIMEOUT AFTER {0} seconds\n{1}".format(str(timeout), output),
                                                  Constants.ErrorKind.TIMEOUT, Constants.ErrorCode.TIMEOUT)
        self.timeout = timeout
        self.output = output
