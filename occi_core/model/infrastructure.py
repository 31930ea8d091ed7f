"""Built-in OCCI Infrastructure categories.

These are used when a server's model does not publish the standard entries
but still accepts requests against them.
"""

from __future__ import annotations

from .category import LINK_KIND, RESOURCE_KIND, Action, Attribute, Kind, Mixin

INFRASTRUCTURE_SCHEME = "http://schemas.ogf.org/occi/infrastructure#"
COMPUTE_ACTION_SCHEME = "http://schemas.ogf.org/occi/infrastructure/compute/action#"
NETWORK_ACTION_SCHEME = "http://schemas.ogf.org/occi/infrastructure/network/action#"
STORAGE_ACTION_SCHEME = "http://schemas.ogf.org/occi/infrastructure/storage/action#"
NETWORK_SCHEME = "http://schemas.ogf.org/occi/infrastructure/network#"
NETWORKINTERFACE_SCHEME = "http://schemas.ogf.org/occi/infrastructure/networkinterface#"

# Compute
# =======

COMPUTE_START = Action.create(
    COMPUTE_ACTION_SCHEME, "start", title="Start Compute Resource",
    attributes=(Attribute("method"),),
)
COMPUTE_STOP = Action.create(
    COMPUTE_ACTION_SCHEME, "stop", title="Stop Compute Resource",
    attributes=(Attribute("method"),),
)
COMPUTE_RESTART = Action.create(
    COMPUTE_ACTION_SCHEME, "restart", title="Restart Compute Resource",
    attributes=(Attribute("method"),),
)
COMPUTE_SUSPEND = Action.create(
    COMPUTE_ACTION_SCHEME, "suspend", title="Suspend Compute Resource",
    attributes=(Attribute("method"),),
)

COMPUTE_KIND = Kind.create(
    INFRASTRUCTURE_SCHEME,
    "compute",
    title="Compute Resource",
    location="/compute/",
    parent=RESOURCE_KIND,
    attributes=(
        Attribute("occi.compute.architecture"),
        Attribute("occi.compute.cores"),
        Attribute("occi.compute.hostname"),
        Attribute("occi.compute.speed"),
        Attribute("occi.compute.memory"),
        Attribute("occi.compute.state", mutable=False),
    ),
    actions=(COMPUTE_START, COMPUTE_STOP, COMPUTE_RESTART, COMPUTE_SUSPEND),
)

# Network
# =======

NETWORK_UP = Action.create(NETWORK_ACTION_SCHEME, "up", title="Bring up Network Resource")
NETWORK_DOWN = Action.create(NETWORK_ACTION_SCHEME, "down", title="Take down Network Resource")

NETWORK_KIND = Kind.create(
    INFRASTRUCTURE_SCHEME,
    "network",
    title="Network Resource",
    location="/network/",
    parent=RESOURCE_KIND,
    attributes=(
        Attribute("occi.network.vlan"),
        Attribute("occi.network.label"),
        Attribute("occi.network.state", mutable=False),
    ),
    actions=(NETWORK_UP, NETWORK_DOWN),
)

IPNETWORK_MIXIN = Mixin.create(
    NETWORK_SCHEME,
    "ipnetwork",
    title="IP Networking Mixin",
    location="/mixins/ipnetwork/",
    attributes=(
        Attribute("occi.network.address"),
        Attribute("occi.network.gateway"),
        Attribute("occi.network.allocation"),
    ),
)

# Storage
# =======

STORAGE_ONLINE = Action.create(STORAGE_ACTION_SCHEME, "online", title="Bring Storage Resource online")
STORAGE_OFFLINE = Action.create(STORAGE_ACTION_SCHEME, "offline", title="Bring Storage Resource offline")
STORAGE_BACKUP = Action.create(STORAGE_ACTION_SCHEME, "backup", title="Backup Storage Resource")
STORAGE_SNAPSHOT = Action.create(STORAGE_ACTION_SCHEME, "snapshot", title="Take snapshot of Storage Resource")
STORAGE_RESIZE = Action.create(
    STORAGE_ACTION_SCHEME, "resize", title="Resize Storage Resource",
    attributes=(Attribute("size", required=True),),
)

STORAGE_KIND = Kind.create(
    INFRASTRUCTURE_SCHEME,
    "storage",
    title="Storage Resource",
    location="/storage/",
    parent=RESOURCE_KIND,
    attributes=(
        Attribute("occi.storage.size", required=True),
        Attribute("occi.storage.state", mutable=False),
    ),
    actions=(STORAGE_ONLINE, STORAGE_OFFLINE, STORAGE_BACKUP, STORAGE_SNAPSHOT, STORAGE_RESIZE),
)

# Links
# =====

STORAGELINK_KIND = Kind.create(
    INFRASTRUCTURE_SCHEME,
    "storagelink",
    title="Storage Link",
    location="/link/storagelink/",
    parent=LINK_KIND,
    attributes=(
        Attribute("occi.storagelink.deviceid", required=True),
        Attribute("occi.storagelink.mountpoint"),
        Attribute("occi.storagelink.state", mutable=False),
    ),
)

NETWORKINTERFACE_KIND = Kind.create(
    INFRASTRUCTURE_SCHEME,
    "networkinterface",
    title="Network Interface",
    location="/link/networkinterface/",
    parent=LINK_KIND,
    attributes=(
        Attribute("occi.networkinterface.interface", mutable=False),
        Attribute("occi.networkinterface.mac"),
        Attribute("occi.networkinterface.state", mutable=False),
    ),
)

IPNETWORKINTERFACE_MIXIN = Mixin.create(
    NETWORKINTERFACE_SCHEME,
    "ipnetworkinterface",
    title="IP Network Interface Mixin",
    location="/mixins/ipnetworkinterface/",
    attributes=(
        Attribute("occi.networkinterface.address"),
        Attribute("occi.networkinterface.gateway"),
        Attribute("occi.networkinterface.allocation"),
    ),
)

# Templates
# =========

OS_TPL_MIXIN = Mixin.create(
    INFRASTRUCTURE_SCHEME, "os_tpl", title="OS Template", location="/mixins/os_tpl/",
)
RESOURCE_TPL_MIXIN = Mixin.create(
    INFRASTRUCTURE_SCHEME, "resource_tpl", title="Resource Template", location="/mixins/resource_tpl/",
)

INFRASTRUCTURE_KINDS: tuple[Kind, ...] = (
    COMPUTE_KIND,
    NETWORK_KIND,
    STORAGE_KIND,
    STORAGELINK_KIND,
    NETWORKINTERFACE_KIND,
)
INFRASTRUCTURE_MIXINS: tuple[Mixin, ...] = (
    IPNETWORK_MIXIN,
    IPNETWORKINTERFACE_MIXIN,
    OS_TPL_MIXIN,
    RESOURCE_TPL_MIXIN,
)
INFRASTRUCTURE_ACTIONS: tuple[Action, ...] = (
    COMPUTE_START,
    COMPUTE_STOP,
    COMPUTE_RESTART,
    COMPUTE_SUSPEND,
    NETWORK_UP,
    NETWORK_DOWN,
    STORAGE_ONLINE,
    STORAGE_OFFLINE,
    STORAGE_BACKUP,
    STORAGE_SNAPSHOT,
    STORAGE_RESIZE,
)
