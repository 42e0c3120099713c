"""Bridge resources parsed from Hue API v1 JSON.

Each model exposes ``from_api`` which raises KeyError/TypeError/ValueError on
malformed payloads; BridgeClient turns those into ParseError.
"""

from dataclasses import dataclass, field

from core.errors import InvalidSceneData

# Hue values for the status colours (hue is 0-65535 around the colour wheel)
SUCCESS_HUE = 21845  # green, 120 degrees
FAILURE_HUE = 0      # red
MAX_BRIGHTNESS = 254
MAX_SATURATION = 254

# Fields accepted by PUT /lights/<id>/state
WRITABLE_STATE_FIELDS = ('on', 'bri', 'hue', 'sat', 'xy', 'ct', 'effect')

# Colour fields that belong to each colormode; the bridge gives xy priority over ct and hue/sat
COLOUR_FIELDS = ('hue', 'sat', 'xy', 'ct')
COLORMODE_FIELDS = {
    'hs': ('hue', 'sat'),
    'xy': ('xy',),
    'ct': ('ct',),
}


@dataclass
class LightState:
    on: bool
    bri: int | None = None
    hue: int | None = None
    sat: int | None = None
    effect: str | None = None
    xy: list[float] | None = None
    ct: int | None = None
    alert: str | None = None
    colormode: str | None = None
    mode: str | None = None
    reachable: bool | None = None

    @classmethod
    def from_api(cls, data: dict) -> 'LightState':
        return cls(
            on=bool(data['on']),
            bri=data.get('bri'),
            hue=data.get('hue'),
            sat=data.get('sat'),
            effect=data.get('effect'),
            xy=list(data['xy']) if data.get('xy') is not None else None,
            ct=data.get('ct'),
            alert=data.get('alert'),
            colormode=data.get('colormode'),
            mode=data.get('mode'),
            reachable=data.get('reachable'),
        )

    @classmethod
    def coloured(cls, hue: int, sat: int = MAX_SATURATION, bri: int = MAX_BRIGHTNESS) -> 'LightState':
        """Full-on hue/saturation state used for status scenes."""
        return cls(on=True, bri=bri, hue=hue, sat=sat, colormode='hs')

    def to_api(self) -> dict:
        """Serialise to a writable state body, skipping unset fields.

        When colormode is known only that mode's colour fields are written, so
        a light captured in ct mode is restored in ct mode.
        """
        mode_fields = COLORMODE_FIELDS.get(self.colormode)
        body = {}
        for name in WRITABLE_STATE_FIELDS:
            if mode_fields is not None and name in COLOUR_FIELDS and name not in mode_fields:
                continue
            value = getattr(self, name)
            if value is not None:
                body[name] = value
        return body

    def validate(self):
        if self.bri is not None and self.bri == 0:
            raise InvalidSceneData('Brightness cannot be 0 (use on: false instead)')
        if self.sat is not None and not 0 <= self.sat <= MAX_SATURATION:
            raise InvalidSceneData(f'Saturation value must be between 0 and {MAX_SATURATION}')


@dataclass
class Light:
    name: str
    state: LightState
    type: str = ''
    modelid: str = ''
    manufacturername: str = ''
    productname: str | None = None
    capabilities: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict) -> 'Light':
        return cls(
            name=data['name'],
            state=LightState.from_api(data['state']),
            type=data.get('type', ''),
            modelid=data.get('modelid', ''),
            manufacturername=data.get('manufacturername', ''),
            productname=data.get('productname'),
            capabilities=data.get('capabilities') or {},
        )

    @property
    def control(self) -> dict:
        return self.capabilities.get('control') or {}

    def supports_color(self) -> bool:
        return self.control.get('colorgamut') is not None

    def supports_color_temperature(self) -> bool:
        return self.control.get('ct') is not None

    def is_reachable(self) -> bool:
        return bool(self.state.reachable)

    def is_suitable_for_status(self) -> bool:
        """Reachable and able to show a colour (full colour or white ambiance)."""
        return self.is_reachable() and (self.supports_color() or self.supports_color_temperature())


@dataclass
class Scene:
    name: str
    lights: list[str]
    owner: str = ''
    recycle: bool = False
    locked: bool = False
    lastupdated: str | None = None
    version: int | None = None
    lightstates: dict[str, LightState] | None = None

    @classmethod
    def from_api(cls, data: dict) -> 'Scene':
        lightstates = data.get('lightstates')
        return cls(
            name=data['name'],
            lights=[str(light_id) for light_id in data['lights']],
            owner=data.get('owner', ''),
            recycle=bool(data.get('recycle', False)),
            locked=bool(data.get('locked', False)),
            lastupdated=data.get('lastupdated'),
            version=data.get('version'),
            lightstates={
                light_id: LightState.from_api(state) for light_id, state in lightstates.items()
            } if lightstates else None,
        )

    def is_suitable_for_status(self) -> bool:
        return not self.locked and len(self.lights) > 0


@dataclass
class Group:
    name: str
    lights: list[str]
    type: str = ''
    all_on: bool = False
    any_on: bool = False

    @classmethod
    def from_api(cls, data: dict) -> 'Group':
        state = data.get('state') or {}
        return cls(
            name=data['name'],
            lights=[str(light_id) for light_id in data['lights']],
            type=data.get('type', ''),
            all_on=bool(state.get('all_on', False)),
            any_on=bool(state.get('any_on', False)),
        )


@dataclass
class BridgeConfiguration:
    """Subset of GET /config used by huestatus."""
    name: str
    bridgeid: str
    modelid: str = ''
    swversion: str = ''
    apiversion: str = ''
    mac: str = ''
    ipaddress: str = ''
    linkbutton: bool = False

    @classmethod
    def from_api(cls, data: dict) -> 'BridgeConfiguration':
        return cls(
            name=data['name'],
            bridgeid=data['bridgeid'],
            modelid=data.get('modelid', ''),
            swversion=data.get('swversion', ''),
            apiversion=data.get('apiversion', ''),
            mac=data.get('mac', ''),
            ipaddress=data.get('ipaddress', ''),
            linkbutton=bool(data.get('linkbutton', False)),
        )


@dataclass
class CapabilityLimits:
    available: int
    total: int


@dataclass
class BridgeCapabilities:
    lights: CapabilityLimits
    scenes: CapabilityLimits
    groups: CapabilityLimits

    @classmethod
    def from_api(cls, data: dict) -> 'BridgeCapabilities':
        def limits(key: str) -> CapabilityLimits:
            entry = data[key]
            return CapabilityLimits(available=int(entry['available']), total=int(entry['total']))

        return cls(lights=limits('lights'), scenes=limits('scenes'), groups=limits('groups'))


@dataclass
class CreateSceneRequest:
    name: str
    lights: list[str]
    lightstates: dict[str, LightState]
    recycle: bool = True

    @classmethod
    def custom_scene(cls, name: str, lights: list[str], hue: int,
                     sat: int = MAX_SATURATION, bri: int = MAX_BRIGHTNESS) -> 'CreateSceneRequest':
        return cls(
            name=name,
            lights=list(lights),
            lightstates={light_id: LightState.coloured(hue, sat, bri) for light_id in lights},
        )

    @classmethod
    def success_scene(cls, name: str, lights: list[str]) -> 'CreateSceneRequest':
        return cls.custom_scene(name, lights, SUCCESS_HUE)

    @classmethod
    def failure_scene(cls, name: str, lights: list[str]) -> 'CreateSceneRequest':
        return cls.custom_scene(name, lights, FAILURE_HUE)

    def validate(self):
        if not self.name:
            raise InvalidSceneData('Scene name cannot be empty')
        if not self.lights:
            raise InvalidSceneData('Scene must have at least one light')
        if not self.lightstates:
            raise InvalidSceneData('Scene must have light states')
        for light_id in self.lights:
            if light_id not in self.lightstates:
                raise InvalidSceneData(f'Light {light_id} has no corresponding light state')
        for state in self.lightstates.values():
            state.validate()

    def to_api(self) -> dict:
        return {
            'name': self.name,
            'lights': self.lights,
            'recycle': self.recycle,
            'lightstates': {light_id: state.to_api() for light_id, state in self.lightstates.items()},
        }
