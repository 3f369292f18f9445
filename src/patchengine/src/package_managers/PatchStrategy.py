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

"""The base patch strategy, which defines the per-family patching operations"""
from abc import ABCMeta, abstractmethod
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError


class PatchOutcome(object):
    """ What a strategy reports back for the run report """
    def __init__(self, return_code=Constants.RETURN_SUCCESS, packages_updated=None, job_id="", raw_output=""):
        self.return_code = return_code
        self.packages_updated = packages_updated if packages_updated is not None else []
        self.job_id = job_id
        self.raw_output = raw_output


class PatchStrategy(metaclass=ABCMeta):
    """Base class of patch strategies"""

    def __init__(self, env_layer, composite_logger):
        self.env_layer = env_layer
        self.composite_logger = composite_logger

        # Set by each family
        self.family = None
        self.tool_name = None
        self.extra_params_key = None
        self.clean_cache_cmd = None

    @abstractmethod
    def execute(self, run_context, request):
        """Applies the pending updates for the requested mode and returns a PatchOutcome."""
        pass

    def get_update_count(self, run_context, security_only):
        return run_context.inventory.get_update_count(security_only)

    def clean_cache(self):
        """Clears the package manager's download cache."""
        if self.clean_cache_cmd is None:
            self.composite_logger.log("Cache clean not applicable. [Family={0}]".format(str(self.family)))
            return

        self.composite_logger.log_debug("[PS] Cleaning package cache. [Command={0}]".format(self.clean_cache_cmd))
        code, output, error_output = self.env_layer.run_command_capture(self.clean_cache_cmd)
        if code != 0:
            raise PatchOperationError(error_output or output, Constants.ErrorKind.CLEAN_CACHE, code)
        self.composite_logger.log("Cache cleaned")

    # region - Helpers
    def invoke_package_manager(self, command, timeout, operation_name):
        # type: (str, int, str) -> str
        """ Runs the update command under the run's deadline. Non-zero exit is a package-manager error. """
        self.composite_logger.log("Running {0}".format(operation_name))
        self.composite_logger.log_debug("[PS] Invoking package manager. [Command={0}][Timeout={1}]".format(command, str(timeout)))
        outcome = self.env_layer.run_command_with_timeout(command, timeout, Constants.PATCH_POLL_INTERVAL_IN_SECS)
        self.composite_logger.log_debug("[PS] Package manager returned. [Code={0}][DurationInSecs={1}]".format(str(outcome.exit_status), str(round(outcome.duration, 1))))
        self.composite_logger.log_verbose(outcome.combined_output)

        if outcome.exit_status != 0:
            raise PatchOperationError("{0} returned non-zero ({1}) : {2}".format(operation_name, str(outcome.exit_status), outcome.combined_output),
                                      Constants.ErrorKind.PACKAGE_MANAGER, outcome.exit_status)
        return outcome.combined_output

    @staticmethod
    def compose_command(template, **kwargs):
        """ Fills a command template, dropping the gaps left by empty optional parts """
        return " ".join(template.format(**kwargs).split())
    # endregion
