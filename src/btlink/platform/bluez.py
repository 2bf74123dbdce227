"""
The Linux BlueZ platform. The adapter and the paired devices are read from BlueZ over the
system D-Bus; RFCOMM sockets and the SDP service lookup/advertisement use PyBluez.
"""
import logging
import socket

import bluetooth
import dbus

from btlink.platform.base import AdapterInfo, Peer, Platform, ServerSocket

logger = logging.getLogger(__name__)

BLUEZ_SERVICE = 'org.bluez'
OBJECT_MANAGER_INTERFACE = 'org.freedesktop.DBus.ObjectManager'
ADAPTER_INTERFACE = 'org.bluez.Adapter1'
DEVICE_INTERFACE = 'org.bluez.Device1'


def find_adapter(objects, adapter_path=None):
    """
    Finds the adapter in the BlueZ managed objects.
    :param objects: the result of ObjectManager.GetManagedObjects()
    :param adapter_path: the object path of the adapter, e.g. /org/bluez/hci0. When None,
        the adapter with the lowest path is used.
    :return: a tuple (path, properties) or None
    """
    adapters = sorted((str(path), interfaces[ADAPTER_INTERFACE]) for path, interfaces in objects.items()
                      if ADAPTER_INTERFACE in interfaces)
    for path, properties in adapters:
        if adapter_path is None or path == adapter_path:
            return path, properties
    return None


def paired_devices(objects, adapter_path):
    """
    Yields the properties of the devices paired with the given adapter, in the order BlueZ reports them.
    """
    for interfaces in objects.values():
        device = interfaces.get(DEVICE_INTERFACE)
        if device is not None and bool(device.get('Paired', False)) \
                and str(device.get('Adapter', '')) == adapter_path:
            yield device


class BluezServerSocket(ServerSocket):
    """ A listening RFCOMM socket advertised through SDP. """

    def __init__(self, sock, channel):
        self.sock = sock
        self.channel = channel
        self.closed = False

    def accept(self):
        try:
            client, info = self.sock.accept()
        except bluetooth.BluetoothError as e:
            raise OSError(str(e)) from e
        return client, info[0]

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            bluetooth.stop_advertising(self.sock)
        except bluetooth.BluetoothError as e:
            logger.debug("stop advertising on channel %s: %s" % (self.channel, e))
        try:
            # wakes a thread blocked in accept()
            self.sock.shutdown(socket.SHUT_RDWR)
        except (bluetooth.BluetoothError, OSError) as e:
            logger.debug("shutdown of server socket on channel %s: %s" % (self.channel, e))
        self.sock.close()


class BluezPlatform(Platform):
    """
    :param adapter_path: the D-Bus object path of the adapter to use, or None for the first adapter
    :param bus: the D-Bus connection. The system bus is used when not given.
    """

    def __init__(self, adapter_path=None, bus=None):
        self.adapter_path = adapter_path
        self._bus = bus

    @property
    def bus(self):
        if self._bus is None:
            self._bus = dbus.SystemBus()
        return self._bus

    def _managed_objects(self):
        manager = dbus.Interface(self.bus.get_object(BLUEZ_SERVICE, '/'), OBJECT_MANAGER_INTERFACE)
        return manager.GetManagedObjects()

    def adapter(self):
        try:
            objects = self._managed_objects()
        except dbus.exceptions.DBusException as e:
            logger.warning("unable to query bluez for adapters: %s" % e)
            return None
        found = find_adapter(objects, self.adapter_path)
        if found is None:
            return None
        path, properties = found
        return AdapterInfo(str(properties.get('Address', '')), str(properties.get('Alias', path)),
                           bool(properties.get('Powered', False)))

    def paired_peers(self):
        objects = self._managed_objects()
        found = find_adapter(objects, self.adapter_path)
        if found is None:
            return ()
        return tuple(Peer(str(device.get('Name', device.get('Alias', ''))), str(device['Address']))
                     for device in paired_devices(objects, found[0]))

    def connect(self, peer: Peer, uuid):
        try:
            services = bluetooth.find_service(uuid=uuid, address=peer.address)
        except bluetooth.BluetoothError as e:
            raise OSError("service lookup on %s failed: %s" % (peer.key(), e)) from e
        if not services:
            raise ConnectionRefusedError("service %s not found on %s" % (uuid, peer.key()))
        port = services[0]['port']
        sock = bluetooth.BluetoothSocket(bluetooth.RFCOMM)
        try:
            sock.connect((peer.address, port))
        except bluetooth.BluetoothError as e:
            sock.close()
            raise OSError("connecting to %s channel %s failed: %s" % (peer.key(), port, e)) from e
        logger.debug("Socket connected with device [%s] on channel %s" % (peer.name, port))
        return sock

    def listen(self, name, uuid):
        sock = bluetooth.BluetoothSocket(bluetooth.RFCOMM)
        try:
            sock.bind(("", bluetooth.PORT_ANY))
            sock.listen(1)
            channel = sock.getsockname()[1]
            bluetooth.advertise_service(sock, name, service_id=uuid,
                                        service_classes=[uuid, bluetooth.SERIAL_PORT_CLASS],
                                        profiles=[bluetooth.SERIAL_PORT_PROFILE])
        except bluetooth.BluetoothError as e:
            sock.close()
            raise OSError("unable to listen for service %s: %s" % (uuid, e)) from e
        logger.debug("advertising '%s' on RFCOMM channel %s" % (name, channel))
        return BluezServerSocket(sock, channel)
