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

""" Configuration Factory. This module populates configuration based on the environment detected. """
import sys
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.EnvLayer import EnvLayer

from patchengine.src.core_logic.PatchOrchestrator import PatchOrchestrator
from patchengine.src.core_logic.RebootManager import RebootManager

from patchengine.src.local_loggers.CompositeLogger import CompositeLogger
from patchengine.src.local_loggers.FileLogger import FileLogger
from patchengine.src.local_loggers.SyslogLogger import SyslogLogger

from patchengine.src.package_managers.AptPatchStrategy import AptPatchStrategy
from patchengine.src.package_managers.DnfPatchStrategy import DnfPatchStrategy
from patchengine.src.package_managers.WindowsPatchStrategy import WindowsPatchStrategy
from patchengine.src.package_managers.ZypperPatchStrategy import ZypperPatchStrategy

from patchengine.src.service_interfaces.FactsGateway import FactsGateway
from patchengine.src.service_interfaces.StatusHandler import StatusHandler


class ConfigurationFactory(object):
    """ Class for generating module definitions. Configuration is list of key value pairs. Please DON'T change key name.
    DI container relies on the key name to find and resolve dependencies. If you do need change it, please make sure to
    update the key name in all places that reference it. """
    def __init__(self, log_file_path):
        self.bootstrap_configurations = {
            'prod_config':  self.__new_bootstrap_configuration(Constants.ExecEnv.PROD, log_file_path),
            'dev_config':   self.__new_bootstrap_configuration(Constants.ExecEnv.DEV, log_file_path),
            'test_config':  self.__new_bootstrap_configuration(Constants.ExecEnv.TEST, log_file_path)
        }

        self.configurations = {
            'prod_config':  self.__new_prod_configuration(),
            'dev_config':   self.__new_dev_configuration(),
            'test_config':  self.__new_test_configuration()
        }

    # region - Configuration Getters
    def get_bootstrap_configuration(self, env):
        """ Get core configuration for bootstrapping the application. """
        if str(env) not in [Constants.ExecEnv.DEV, Constants.ExecEnv.TEST, Constants.ExecEnv.PROD]:
            print("ERROR: Environment configuration not supported. [Environment={0}]".format(str(env)), file=sys.stderr)
            return None

        configuration_key = str.lower('{0}_config'.format(str(env)))
        return self.bootstrap_configurations[configuration_key]

    @staticmethod
    def get_run_configuration(start_time):
        """ Composes the configuration with values fixed at the start of the run. """
        run_config = {
            'start_time': {
                'component': start_time,
                'component_args': [],
                'component_kwargs': {}
            }
        }
        return run_config

    def get_configuration(self, env):
        """ Gets the final configuration for a given env. """
        if str(env) not in [Constants.ExecEnv.DEV, Constants.ExecEnv.TEST, Constants.ExecEnv.PROD]:
            raise Exception("ERROR: Environment configuration not supported. [Env={0}]".format(str(env)))

        configuration_key = str.lower('{0}_config'.format(str(env)))
        return self.configurations[configuration_key]

    @staticmethod
    def get_patch_strategy_map():
        """ OS family -> component id of the strategy that patches it. A new family only needs a strategy and an entry here. """
        return {
            Constants.OSFamily.REDHAT: 'dnf_patch_strategy',
            Constants.OSFamily.DEBIAN: 'apt_patch_strategy',
            Constants.OSFamily.SUSE: 'zypper_patch_strategy',
            Constants.OSFamily.WINDOWS: 'windows_patch_strategy'
        }
    # endregion

    # region - Configuration Builders
    @staticmethod
    def __new_bootstrap_configuration(config_env, log_file_path):
        """ Core configuration definition. """
        configuration = {
            'config_env': config_env,
            'env_layer': {
                'component': EnvLayer,
                'component_args': [],
                'component_kwargs': {}
            },
            'file_logger': {
                'component': FileLogger,
                'component_args': ['env_layer'],
                'component_kwargs': {
                    'log_file': log_file_path
                }
            },
            'syslog_logger': {
                'component': SyslogLogger,
                'component_args': [],
                'component_kwargs': {
                    'enabled': config_env == Constants.ExecEnv.PROD
                }
            },
            'composite_logger': {
                'component': CompositeLogger,
                'component_args': ['env_layer', 'file_logger', 'syslog_logger'],
                'component_kwargs': {
                    'current_env': config_env
                }
            },
        }
        return configuration

    def __new_prod_configuration(self):
        """ Base configuration for Prod V2. """
        configuration = {
            'status_handler': {
                'component': StatusHandler,
                'component_args': ['env_layer', 'composite_logger', 'start_time'],
                'component_kwargs': {}
            },
            'facts_gateway': {
                'component': FactsGateway,
                'component_args': ['env_layer', 'composite_logger'],
                'component_kwargs': {}
            },
            'reboot_manager': {
                'component': RebootManager,
                'component_args': ['env_layer', 'composite_logger'],
                'component_kwargs': {}
            },
            'dnf_patch_strategy': {
                'component': DnfPatchStrategy,
                'component_args': ['env_layer', 'composite_logger'],
                'component_kwargs': {}
            },
            'apt_patch_strategy': {
                'component': AptPatchStrategy,
                'component_args': ['env_layer', 'composite_logger'],
                'component_kwargs': {}
            },
            'zypper_patch_strategy': {
                'component': ZypperPatchStrategy,
                'component_args': ['env_layer', 'composite_logger'],
                'component_kwargs': {}
            },
            'windows_patch_strategy': {
                'component': WindowsPatchStrategy,
                'component_args': ['env_layer', 'composite_logger'],
                'component_kwargs': {}
            },
            'patch_strategies': {
                'component_map': self.get_patch_strategy_map()
            },
            'patch_orchestrator': {
                'component': PatchOrchestrator,
                'component_args': ['env_layer', 'composite_logger', 'status_handler', 'facts_gateway', 'reboot_manager', 'patch_strategies', 'start_time'],
                'component_kwargs': {}
            }
        }
        return configuration

    def __new_dev_configuration(self):
        """ Base configuration definition for dev. It can be used to override prod configuration for development. """
        configuration = self.__new_prod_configuration()
        return configuration

    def __new_test_configuration(self):
        """ Base configuration definition for test. It can be used to override prod configuration for testing. """
        configuration = self.__new_prod_configuration()
        return configuration
    # endregion
