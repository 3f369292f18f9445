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

""" Status handler - writes the single run document to stdout and the run's line to the history file """
import collections
import json
from patchengine.src.bootstrap.Constants import Constants

# do not instantiate directly - these are exclusively for type hinting support
from patchengine.src.bootstrap.EnvLayer import EnvLayer
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.local_loggers.CompositeLogger import CompositeLogger


class StatusHandler(object):
    """Emits exactly one report per run. Report write always precedes the history append."""

    def __init__(self, env_layer, composite_logger, start_time):
        # type: (EnvLayer, CompositeLogger, any) -> None
        self.env_layer = env_layer
        self.composite_logger = composite_logger
        self.start_time = start_time
        self.history_file_path = self.env_layer.paths.HISTORY_FILE
        self.report_written = False
        self.reported_exit_code = None

    # region - Success reporting
    def build_run_report(self, return_code, reboot, security_only, message, packages_updated, debug_output, job_id, pinned_packages, reboot_required):
        # type: (any, str, bool, str, any, any, str, list, bool) -> collections.OrderedDict
        start_time, end_time, duration = self.__get_timings()
        return collections.OrderedDict([
            ('return_code', return_code),
            ('reboot', reboot),
            ('security_only', bool(security_only)),
            ('message', message),
            ('packages_updated', packages_updated if packages_updated is not None else []),
            ('debug_output', debug_output if debug_output is not None else ""),
            ('job_id', job_id if job_id is not None else ""),
            ('pinned_packages', pinned_packages if pinned_packages is not None else []),
            ('start_time', start_time),
            ('end_time', end_time),
            ('duration', duration),
            ('reboot_required', bool(reboot_required))
        ])

    def report_success(self, run_report):
        # type: (dict) -> None
        self.__write_report(run_report)
        self.reported_exit_code = Constants.ExitCode.Okay
        self.write_history(run_report['message'], run_report['return_code'], run_report['reboot'],
                           self.__format_flag(run_report['security_only']), run_report['job_id'])
        self.composite_logger.log("[SH] Run report written. [ReturnCode={0}][Message={1}]".format(str(run_report['return_code']), run_report['message']))
    # endregion

    # region - Error reporting
    def build_error_report(self, error):
        # type: (PatchOperationError) -> collections.OrderedDict
        start_time, end_time, duration = self.__get_timings()
        return collections.OrderedDict([
            ('message', error.message),
            ('kind', error.kind),
            ('exit_code', error.exit_code),
            ('start_time', start_time),
            ('end_time', end_time)
        ])

    def report_error(self, error):
        # type: (PatchOperationError) -> int
        """ Writes the error document and history line. Returns the exit code for the process.
            A failure after the run's report was written is only logged; the process keeps that report's exit code. """
        if self.report_written:
            self.composite_logger.log_error("[SH] Failure after the run report was written. [Kind={0}][ExitCode={1}][Message={2}]".format(error.kind, str(error.exit_code), error.message))
            return self.reported_exit_code

        error_report = self.build_error_report(error)
        self.__write_report(error_report)
        self.reported_exit_code = error.exit_code

        lines = error.message.splitlines()
        short_message = lines[0].strip() if len(lines) > 0 else ""
        self.write_history(short_message, error.exit_code, "", "", "")
        self.composite_logger.log_error("ERROR : {0} : {1} : {2}".format(error.kind, str(error.exit_code), error.message))
        return error.exit_code
    # endregion

    # region - Sinks
    def write_history(self, message, code, reboot, security, job_id):
        """ Appends one line. History is best-effort: failures are logged, never raised. """
        record = Constants.HISTORY_SEPARATOR.join([self.env_layer.datetime.iso8601(self.start_time), str(message), str(code), str(reboot), str(security), str(job_id)])
        try:
            self.env_layer.file_system.write_with_retry(self.history_file_path, record + "\n", mode='a')
        except Exception as error:
            self.composite_logger.log_warning("Unable to write run history. [Path={0}][Error={1}]".format(self.history_file_path, repr(error)))

    def __write_report(self, report):
        if self.report_written:
            self.composite_logger.log_warning("[SH] A report was already written for this run; suppressing. [Report={0}]".format(json.dumps(report)))
            return
        self.env_layer.write_stdout(json.dumps(report, indent=2) + "\n")
        self.report_written = True
    # endregion

    def __get_timings(self):
        end = self.env_layer.datetime.now().replace(microsecond=0)
        start = self.start_time.replace(microsecond=0)
        return self.env_layer.datetime.iso8601(start), self.env_layer.datetime.iso8601(end), self.env_layer.datetime.total_seconds_from_time_delta(end - start)

    @staticmethod
    def __format_flag(value):
        return "true" if value else "false"
