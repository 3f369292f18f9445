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

""" Run-scoped component container. Components are built once, on first use, from the dependencies named in their
configuration entry (see ConfigurationFactory). """
from patchengine.src.local_loggers.CompositeLogger import CompositeLogger


class _Singleton(type):
    """ A metaclass that creates a Singleton base class when called. """
    _instances = {}

    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            cls._instances[cls] = super(_Singleton, cls).__call__(*args, **kwargs)
        return cls._instances[cls]


class Singleton(metaclass=_Singleton):
    def __init__(self):
        pass


class Container(Singleton):
    class EntryType(object):
        VALUE = "Value"
        FACTORY = "Factory"
        COMPONENT_MAP = "ComponentMap"

    def __init__(self):
        super(Container, self).__init__()
        self.entries = {}       # component id -> (entry type, component, dependencies, settings)
        self.instances = {}
        self.resolving = []
        self.composite_logger = CompositeLogger()

    # region - Registration
    def build(self, configuration):
        """ Registers every entry of a configuration dictionary. Already built instances are kept. """
        for component_id, entry in configuration.items():
            if isinstance(entry, dict) and 'component_map' in entry:
                self.register_component_map(component_id, entry['component_map'])
            elif isinstance(entry, dict):
                self.register(component_id, entry['component'], entry.get('component_args'), entry.get('component_kwargs'))
            else:
                self.register(component_id, entry)

    def register(self, component_id, component, dependencies=None, settings=None):
        """ A callable component is called with its dependencies (by component id) and settings as keyword arguments.
            Anything else is registered as a plain value. """
        if callable(component):
            self.entries[component_id] = (self.EntryType.FACTORY, component, list(dependencies or []), dict(settings or {}))
        elif dependencies or settings:
            raise ValueError("Only callable components take dependencies or settings. [Component={0}]".format(component_id))
        else:
            self.entries[component_id] = (self.EntryType.VALUE, component, [], {})

    def register_component_map(self, component_id, component_map):
        """ Resolves to a dictionary of key -> built component, e.g. OS family -> patch strategy """
        self.entries[component_id] = (self.EntryType.COMPONENT_MAP, dict(component_map), list(component_map.values()), {})
    # endregion

    # region - Resolution
    def get(self, component_id):
        """ Returns the shared instance for the component id. Raises KeyError when it is unknown or depends on itself. """
        if component_id in self.instances:
            return self.instances[component_id]
        if component_id not in self.entries:
            raise KeyError("No component for: {0}".format(component_id))
        if component_id in self.resolving:
            raise KeyError("Circular dependency: {0}".format(" -> ".join(self.resolving + [component_id])))

        self.resolving.append(component_id)
        try:
            instance = self.__instantiate(component_id, *self.entries[component_id])
        finally:
            self.resolving.remove(component_id)

        self.instances[component_id] = instance
        return instance

    def __instantiate(self, component_id, entry_type, component, dependencies, settings):
        if entry_type == self.EntryType.VALUE:
            self.composite_logger.log_verbose("Component: {0}: {1}".format(component_id, str(component)))
            return component

        if entry_type == self.EntryType.COMPONENT_MAP:
            self.composite_logger.log_verbose("Component: {0}: {1}".format(component_id, str(component)))
            return dict((key, self.get(dependency)) for key, dependency in component.items())

        kwargs = dict((dependency, self.get(dependency)) for dependency in dependencies)
        kwargs.update(settings)
        self.composite_logger.log_verbose("Component: {0}: {1}({2})".format(component_id, component.__name__, sorted(kwargs.keys())))
        return component(**kwargs)
    # endregion

    def reset(self):
        """ Drops registrations and built instances """
        self.entries = {}
        self.instances = {}
        self.resolving = []
