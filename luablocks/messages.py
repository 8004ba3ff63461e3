"""Localized user-facing strings."""

import logging

log = logging.getLogger(__name__)

LANGUAGE_NAME = {
    "en": "English",
    "ca": "Català",
    "es": "Español",
}

MSG = {
    "en": {
        "title": "Code",
        "blocks": "Blocks",
        "editor": "Lua",
        "board": "Board",
        "link": "Link",
        "discard": "Discard",
        "load": "Load",
        "save": "Save",
        "run": "Run",
        "stop": "Stop",
        "reboot": "Reboot",
        "upgrade": "Upgrade",
        "connect": "Connect",
        "disconnect": "Disconnect",
        "refreshPorts": "Refresh Ports",
        "port": "Port:",
        "add": "Add",
        "remove": "Remove",
        "category": "Category:",
        "block": "Block:",
        "value": "Value:",
        "name": "Name:",
        "fillFields": "Fill in: {fields}",
        "badCode": "Program error:\n{error}",
        "boardConnected": "Board connected",
        "boardDisconnected": "Board disconnected",
        "information": "Information",
        "alert": "Alert",
        "confirm": "Confirm",
        "sendingCode": "Sending code ...",
        "retrievingDirectory": "Retrieving directory ...",
        "downloadingFile": "Downloading file",
        "deleteAllBlocks": "Delete all {count} blocks?",
        "deleteEditCode": "Do you want to delete the code currently in the editor?",
        "boardInBootloaderMode": "Your board is in bootloader mode and has no firmware yet. "
                                 "Please select a firmware and upgrade your board.",
        "upgradingFirmware": "Upgrading firmware ...",
        "firmwareUpgraded": "Firmware upgraded",
        "badFirmware": "Invalid firmware image:\n{error}",
        "commandFailed": "{command} failed: {error}",
        "programSent": "Program sent to {path}",
        "programStopped": "Program stopped",
        "boardRebooted": "Board rebooted",
        "loadFailed": "Could not load {path}:\n{error}",
        "saveFailed": "Could not save {path}:\n{error}",
        "connecting": "Connecting to {port}...",
        "connectionFailed": "Connection failed: {error}",
        "noPort": "No serial port selected. Click 'Refresh Ports'.",
        "disconnected": "Disconnected",
    },
    "ca": {
        "title": "Codi",
        "blocks": "Blocs",
        "editor": "Lua",
        "board": "Placa",
        "link": "Enllaça",
        "discard": "Descarta",
        "load": "Obre",
        "save": "Desa",
        "run": "Executa",
        "stop": "Atura",
        "reboot": "Reinicia",
        "upgrade": "Actualitza",
        "connect": "Connecta",
        "disconnect": "Desconnecta",
        "refreshPorts": "Actualitza ports",
        "port": "Port:",
        "add": "Afegeix",
        "remove": "Elimina",
        "category": "Categoria:",
        "block": "Bloc:",
        "value": "Valor:",
        "name": "Nom:",
        "fillFields": "Omple: {fields}",
        "badCode": "Error de programa:\n{error}",
        "boardConnected": "Placa connectada",
        "boardDisconnected": "Placa desconnectada",
        "information": "Informació",
        "alert": "Avís",
        "confirm": "Confirmació",
        "sendingCode": "Enviant codi ...",
        "retrievingDirectory": "Obtenint directori ...",
        "downloadingFile": "Descarregant l'arxiu",
        "deleteAllBlocks": "Vols esborrar els {count} blocs?",
        "deleteEditCode": "Vols esborrar el codi que tens actualment a l'editor?",
        "boardInBootloaderMode": "La placa està en mode bootloader i encara no té firmware. "
                                 "Selecciona un firmware i actualitza la placa.",
        "upgradingFirmware": "Actualitzant el firmware ...",
        "firmwareUpgraded": "Firmware actualitzat",
        "badFirmware": "Imatge de firmware no vàlida:\n{error}",
        "commandFailed": "{command} ha fallat: {error}",
        "programSent": "Programa enviat a {path}",
        "programStopped": "Programa aturat",
        "boardRebooted": "Placa reiniciada",
        "loadFailed": "No s'ha pogut obrir {path}:\n{error}",
        "saveFailed": "No s'ha pogut desar {path}:\n{error}",
        "connecting": "Connectant a {port}...",
        "connectionFailed": "Error de connexió: {error}",
        "noPort": "No hi ha cap port sèrie seleccionat.",
        "disconnected": "Desconnectat",
    },
    "es": {
        "title": "Código",
        "blocks": "Bloques",
        "editor": "Lua",
        "board": "Placa",
        "link": "Enlazar",
        "discard": "Descartar",
        "load": "Abrir",
        "save": "Guardar",
        "run": "Ejecutar",
        "stop": "Detener",
        "reboot": "Reiniciar",
        "upgrade": "Actualizar",
        "connect": "Conectar",
        "disconnect": "Desconectar",
        "refreshPorts": "Actualizar puertos",
        "port": "Puerto:",
        "add": "Añadir",
        "remove": "Eliminar",
        "category": "Categoría:",
        "block": "Bloque:",
        "value": "Valor:",
        "name": "Nombre:",
        "fillFields": "Rellena: {fields}",
        "badCode": "Error de programa:\n{error}",
        "boardConnected": "Placa conectada",
        "boardDisconnected": "Placa desconectada",
        "information": "Información",
        "alert": "Aviso",
        "confirm": "Confirmación",
        "sendingCode": "Enviando código ...",
        "retrievingDirectory": "Obteniendo directorio ...",
        "downloadingFile": "Descargando el archivo",
        "deleteAllBlocks": "¿Borrar los {count} bloques?",
        "deleteEditCode": "¿Quieres borrar el código que tienes en el editor?",
        "boardInBootloaderMode": "La placa está en modo bootloader y aún no tiene firmware. "
                                 "Selecciona un firmware y actualiza la placa.",
        "upgradingFirmware": "Actualizando el firmware ...",
        "firmwareUpgraded": "Firmware actualizado",
        "badFirmware": "Imagen de firmware no válida:\n{error}",
        "commandFailed": "{command} ha fallado: {error}",
        "programSent": "Programa enviado a {path}",
        "programStopped": "Programa detenido",
        "boardRebooted": "Placa reiniciada",
        "loadFailed": "No se ha podido abrir {path}:\n{error}",
        "saveFailed": "No se ha podido guardar {path}:\n{error}",
        "connecting": "Conectando a {port}...",
        "connectionFailed": "Error de conexión: {error}",
        "noPort": "No hay ningún puerto serie seleccionado.",
        "disconnected": "Desconectado",
    },
}


class Messages:
    def __init__(self, lang="en"):
        if lang not in MSG:
            log.warning("unknown language %r, using English", lang)
            lang = "en"
        self.lang = lang

    def lookup(self, key):
        table = MSG[self.lang]
        if key in table:
            return table[key]
        if key in MSG["en"]:
            return MSG["en"][key]
        log.warning("missing message %r", key)
        return key
