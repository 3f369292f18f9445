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

""" ExitJanitor - responsible for orchestrating all cleanup activities at managed execution termination """
import sys
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.local_loggers.CompositeLogger import CompositeLogger
from patchengine.src.service_interfaces.StatusHandler import StatusHandler


class ExitJanitor(object):
    @staticmethod
    def final_exit(exit_code=Constants.ExitCode.Okay, env_layer=None, file_logger=None, syslog_logger=None):
        """ Common code for exit in all cases. The report and history line are already written by now. """
        if file_logger is not None:
            file_logger.close(message_at_close="\n[EJ][EXIT] End of all output. Execution complete. [ExitCode={0}]".format(str(exit_code)))
        if syslog_logger is not None:
            syslog_logger.close()

        if env_layer is not None:
            env_layer.exit(exit_code)
        else:
            sys.exit(exit_code)

    @staticmethod
    def safely_handle_extreme_failure(exception, env_layer=None, file_logger=None):
        """ Encapsulates the most basic failure management when bootstrapping did not complete.
            Still writes the error document and history line when an environment layer is available. """
        print("Unhandled exception during patch engine bootstrap: {0}".format(repr(exception)), file=sys.stderr)
        exit_code = Constants.ExitCode.CriticalError
        if env_layer is not None:
            try:
                status_handler = StatusHandler(env_layer, CompositeLogger(env_layer, file_logger), env_layer.datetime.now())
                bootstrap_error = PatchOperationError("Patch engine bootstrap failed: {0}".format(repr(exception)), Constants.ErrorKind.SETUP, Constants.ErrorCode.GENERIC)
                exit_code = status_handler.report_error(bootstrap_error)
            except Exception as error:
                print("Unable to report bootstrap failure: {0}".format(repr(error)), file=sys.stderr)
        ExitJanitor.final_exit(exit_code, env_layer, file_logger)
