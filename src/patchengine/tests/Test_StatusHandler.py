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
import unittest

from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.tests.library.RuntimeCompositor import RuntimeCompositor


class TestStatusHandler(unittest.TestCase):
    def setUp(self):
        self.runtime = RuntimeCompositor()
        self.status_handler = self.runtime.status_handler
        self.extensions = self.runtime.env_layer_extensions
        self.start_time_iso = self.runtime.env_layer.datetime.iso8601(self.runtime.bootstrapper.start_time)

    def tearDown(self):
        self.runtime.stop()

    def test_run_report_keys_and_history(self):
        run_report = self.status_handler.build_run_report("Success", "smart", True, "Patching complete", {"bash-5.1": "Upgraded"},
                                                          "Complete!", "12", ["kernel"], False)
        self.status_handler.report_success(run_report)

        report = self.extensions.get_last_report()
        self.assertEqual(list(report.keys()), ["return_code", "reboot", "security_only", "message", "packages_updated", "debug_output",
                                               "job_id", "pinned_packages", "start_time", "end_time", "duration", "reboot_required"])
        self.assertEqual(report["return_code"], "Success")
        self.assertEqual(report["packages_updated"], {"bash-5.1": "Upgraded"})
        self.assertEqual(report["pinned_packages"], ["kernel"])
        self.assertEqual(report["start_time"], self.start_time_iso)
        self.assertTrue(report["duration"] >= 0)
        self.assertFalse(report["reboot_required"])

        self.assertEqual(self.runtime.get_history_lines(), ["{0}|Patching complete|Success|smart|true|12".format(self.start_time_iso)])

    def test_run_report_defaults(self):
        run_report = self.status_handler.build_run_report("Success", "never", False, "No patches to apply", None, None, None, None, True)
        self.assertEqual(run_report["packages_updated"], [])
        self.assertEqual(run_report["debug_output"], "")
        self.assertEqual(run_report["job_id"], "")
        self.assertEqual(run_report["pinned_packages"], [])
        self.assertTrue(run_report["reboot_required"])

    def test_error_report_and_history(self):
        error = PatchOperationError("dnf upgrade returned non-zero (1) : Error: Failed to download metadata\nmore detail", Constants.ErrorKind.PACKAGE_MANAGER, 1)
        exit_code = self.status_handler.report_error(error)

        self.assertEqual(exit_code, 1)
        report = self.extensions.get_last_report()
        self.assertEqual(list(report.keys()), ["message", "kind", "exit_code", "start_time", "end_time"])
        self.assertEqual(report["kind"], "package-manager")
        self.assertEqual(report["exit_code"], 1)
        self.assertTrue(report["message"].endswith("more detail"))

        self.assertEqual(self.runtime.get_history_lines(), ["{0}|dnf upgrade returned non-zero (1) : Error: Failed to download metadata|1|||".format(self.start_time_iso)])
        self.runtime.file_logger.flush()
        with open(self.runtime.paths.LOG_FILE, "r") as file_handle:
            self.assertTrue("ERROR : package-manager : 1 : dnf upgrade returned non-zero (1)" in file_handle.read())

    def test_only_one_report_per_run(self):
        first_exit_code = self.status_handler.report_error(PatchOperationError("first", Constants.ErrorKind.BLOCKED, 100))
        second_exit_code = self.status_handler.report_error(PatchOperationError("second", Constants.ErrorKind.UNHANDLED, 1))
        self.assertEqual(len(self.extensions.stdout_writes), 1)
        self.assertEqual(self.extensions.get_last_report()["message"], "first")
        self.assertEqual(len(self.runtime.get_history_lines()), 1)
        self.assertEqual(first_exit_code, 100)
        self.assertEqual(second_exit_code, 100)

    def test_failure_after_success_report_keeps_success(self):
        run_report = self.status_handler.build_run_report("Success", "always", False, "Patching complete", [], "", "12", [], False)
        self.status_handler.report_success(run_report)
        exit_code = self.status_handler.report_error(PatchOperationError("OSError('shutdown not found')", Constants.ErrorKind.UNHANDLED, 1))

        self.assertEqual(exit_code, Constants.ExitCode.Okay)
        self.assertEqual(len(self.extensions.stdout_writes), 1)
        self.assertEqual(self.extensions.get_last_report()["return_code"], "Success")
        self.assertEqual(self.runtime.get_history_lines(), ["{0}|Patching complete|Success|always|false|12".format(self.start_time_iso)])

    def test_history_is_appended(self):
        with open(self.runtime.paths.HISTORY_FILE, "w") as file_handle:
            file_handle.write("2024-01-01T00:00:00+00:00|Patching complete|Success|never|false|3\n")
        self.status_handler.write_history("No patches to apply", "Success", "never", "false", "")
        lines = self.runtime.get_history_lines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].endswith("|No patches to apply|Success|never|false|"))

    def test_history_write_failure_is_not_fatal(self):
        os.mkdir(os.path.join(self.runtime.temp_folder, "history_as_directory"))
        self.status_handler.history_file_path = os.path.join(self.runtime.temp_folder, "history_as_directory")
        self.status_handler.write_history("Patching complete", "Success", "never", "false", "")
        self.assertEqual(self.runtime.get_history_lines(), [])


if __name__ == '__main__':
    unittest.main()
