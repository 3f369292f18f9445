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
import sys

from patchengine.src.bootstrap.Bootstrapper import Bootstrapper
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.EnvLayer import EnvLayer
from patchengine.src.bootstrap.ExitJanitor import ExitJanitor
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.service_interfaces.StatusHandler import StatusHandler


class PatchEngineMain(object):
    def __init__(self, argv=None):
        """The main entry point of patch run execution"""
        # Level 1 bootstrapping - bare minimum components to allow for diagnostics in further bootstrapping
        try:
            bootstrapper = Bootstrapper()
        except Exception as error:
            ExitJanitor.safely_handle_extreme_failure(error, self.__get_fallback_env_layer())
            return

        composite_logger = bootstrapper.composite_logger
        status_handler = None
        exit_code = Constants.ExitCode.CriticalError

        try:
            # Level 2 bootstrapping
            composite_logger.log_debug("Building out full container...")
            container = bootstrapper.build_out_container()
            status_handler, patch_orchestrator = bootstrapper.build_core_components(container)
            composite_logger.log_debug("Completed building out full container.\n")
            bootstrapper.basic_environment_health_check()

            exit_code = patch_orchestrator.start_patching()

        except PatchOperationError as error:
            composite_logger.log_debug("[PEM] Patch run terminated. " + repr(error))
            exit_code = self.__get_status_handler(status_handler, bootstrapper).report_error(error)

        except Exception as error:
            # General handling: still one document and one history line
            composite_logger.log_error('\nEXCEPTION during patch operation: ' + repr(error))
            composite_logger.log_error('TO TROUBLESHOOT, please save this file before the next invocation: ' + bootstrapper.log_file_path)
            unhandled_error = PatchOperationError(repr(error), Constants.ErrorKind.UNHANDLED, Constants.ErrorCode.GENERIC)
            exit_code = self.__get_status_handler(status_handler, bootstrapper).report_error(unhandled_error)

        finally:
            ExitJanitor.final_exit(exit_code, bootstrapper.env_layer, bootstrapper.file_logger, bootstrapper.syslog_logger)

    @staticmethod
    def __get_fallback_env_layer():
        """ A bare environment layer for reporting a bootstrap failure, if even that can be built """
        try:
            return EnvLayer()
        except Exception as error:
            print("Unable to initialize environment layer: {0}".format(repr(error)), file=sys.stderr)
            return None

    @staticmethod
    def __get_status_handler(status_handler, bootstrapper):
        """ Falls back to a directly built handler when the container failed before producing one """
        if status_handler is not None:
            return status_handler
        return StatusHandler(bootstrapper.env_layer, bootstrapper.composite_logger, bootstrapper.start_time)


def main(argv=None):
    PatchEngineMain(argv if argv is not None else sys.argv)
