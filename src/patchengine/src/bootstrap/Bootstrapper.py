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

""" Environment Manager """
import os
import sys
from patchengine.src.bootstrap.ConfigurationFactory import ConfigurationFactory
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.Container import Container
from patchengine.src.bootstrap.EnvLayer import EnvLayer


class Bootstrapper(object):
    def __init__(self, log_file_path=None):
        # Environment and basic execution awareness
        self.current_env = self.get_current_env()
        self.log_file_path = log_file_path if log_file_path is not None else self.get_default_log_file_path()

        # Container initialization
        self.configuration_factory = ConfigurationFactory(self.log_file_path)
        self.container = Container()
        self.container.build(self.configuration_factory.get_bootstrap_configuration(self.current_env))

        # Environment layer capture
        self.env_layer = self.container.get('env_layer')
        self.start_time = self.env_layer.datetime.now()

        # Logging initializations
        self.file_logger = self.container.get('file_logger')
        self.syslog_logger = self.container.get('syslog_logger')
        self.composite_logger = self.container.get('composite_logger')

    @staticmethod
    def get_current_env():
        """ Decides what environment to bootstrap with """
        current_env = str(os.getenv(Constants.OS_PATCHING_ENV_VARIABLE, Constants.ExecEnv.PROD))
        if current_env not in [Constants.ExecEnv.DEV, Constants.ExecEnv.TEST, Constants.ExecEnv.PROD]:
            print("Unknown environment requested: {0}".format(current_env), file=sys.stderr)
            current_env = Constants.ExecEnv.PROD
        return current_env

    @staticmethod
    def get_default_log_file_path():
        return Constants.WindowsPaths.LOG_FILE if EnvLayer.Platform().is_windows() else Constants.LinuxPaths.LOG_FILE

    def build_out_container(self):
        try:
            # run-scoped values
            self.container.build(self.configuration_factory.get_run_configuration(self.start_time))

            # full configuration incorporation
            self.container.build(self.configuration_factory.get_configuration(self.current_env))

            return self.container
        except Exception as error:
            self.composite_logger.log_error('\nEXCEPTION during patch engine bootstrap: ' + repr(error))
            raise

    def build_core_components(self, container):
        self.composite_logger.log_debug(" - Instantiating status handler.")
        status_handler = container.get('status_handler')
        self.composite_logger.log_debug(" - Instantiating patch orchestrator.")
        patch_orchestrator = container.get('patch_orchestrator')
        return status_handler, patch_orchestrator

    def basic_environment_health_check(self):
        self.composite_logger.log_debug("Python version: " + " ".join(sys.version.splitlines()))
        self.composite_logger.log_debug("Platform: " + str(self.env_layer.platform.system()) + " [Node=" + str(self.env_layer.platform.node()) + "]")
        self.composite_logger.log_debug("Process id: " + str(os.getpid()))
