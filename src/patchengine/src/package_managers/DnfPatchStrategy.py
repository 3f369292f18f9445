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

"""DnfPatchStrategy for RedHat family nodes"""
import re
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.package_managers.PatchStrategy import PatchStrategy, PatchOutcome


class DnfPatchStrategy(PatchStrategy):
    """Implementation of RedHat patching using dnf and its transaction history"""

    def __init__(self, env_layer, composite_logger):
        super(DnfPatchStrategy, self).__init__(env_layer, composite_logger)
        self.family = Constants.OSFamily.REDHAT
        self.tool_name = "dnf"
        self.extra_params_key = Constants.RequestKeys.YUM_PARAMS
        self.clean_cache_cmd = Constants.Dnf.CLEAN_CACHE

        # Commands
        self.upgrade_cmd = Constants.Dnf.UPGRADE
        self.history_cmd = Constants.Dnf.HISTORY
        self.history_info_cmd = Constants.Dnf.HISTORY_INFO

    def execute(self, run_context, request):
        command = self.compose_command(self.upgrade_cmd, params=request.get_extra_params(self.extra_params_key),
                                       security=Constants.Dnf.SECURITY_FLAG if request.security_only else "")
        raw_output = self.invoke_package_manager(command, request.timeout, "dnf upgrade")

        job_id = self.get_last_job_id(run_context.start_time)
        return_code, packages_updated = self.get_job_details(job_id)
        return PatchOutcome(return_code, packages_updated, job_id, raw_output)

    # region - Transaction history
    def get_last_job_id(self, start_time):
        """ First history row wins. It must not predate the run, otherwise dnf did nothing. """
        self.composite_logger.log("Getting dnf job ID")
        output = self.__invoke_history(self.history_cmd)

        job_id, job_time = None, None
        for line in output.splitlines():
            match = re.match(Constants.Dnf.HISTORY_ROW_REGEX, line)
            if match is None:
                continue
            job_id, job_time = match.group(1), match.group(2).strip()
            break

        if not job_id:
            raise PatchOperationError("dnf job ID not found", Constants.ErrorKind.PACKAGE_MANAGER)
        if not job_time:
            raise PatchOperationError("dnf job time not found", Constants.ErrorKind.PACKAGE_MANAGER)

        # dnf history only shows the minute
        try:
            job_end = self.env_layer.datetime.parse_local(job_time + Constants.Dnf.HISTORY_TIME_SECONDS_SUFFIX, Constants.Dnf.HISTORY_TIME_FORMAT)
        except ValueError:
            raise PatchOperationError("dnf job time not found", Constants.ErrorKind.PACKAGE_MANAGER)

        if job_end < start_time:
            raise PatchOperationError("dnf did not appear to run", Constants.ErrorKind.PACKAGE_MANAGER)

        self.composite_logger.log_debug("[DPS] dnf job found. [JobId={0}][JobTime={1}]".format(job_id, job_time))
        return job_id

    def get_job_details(self, job_id):
        """ Returns the transaction's return code and a package -> action mapping """
        self.composite_logger.log_debug("Getting dnf return code for job {0}".format(str(job_id)))
        output = self.__invoke_history(self.history_info_cmd.format(job=job_id))

        return_code = None
        packages_updated = {}
        for line in output.splitlines():
            if return_code is None:
                match = re.match(Constants.Dnf.RETURN_CODE_REGEX, line)
                if match is not None:
                    return_code = match.group(1).strip()
                    continue
            match = re.match(Constants.Dnf.PACKAGE_ACTION_REGEX, line)
            if match is not None:
                packages_updated[match.group(2)] = match.group(1)

        if not return_code:
            raise PatchOperationError("dnf return code not found", Constants.ErrorKind.PACKAGE_MANAGER)

        return return_code, packages_updated

    def __invoke_history(self, command):
        code, output, error_output = self.env_layer.run_command_capture(command)
        if code != 0:
            raise PatchOperationError(error_output or output, Constants.ErrorKind.PACKAGE_MANAGER, code)
        return output
    # endregion
