"""Prompt sent to the image generator with every upload.

Edit this text to change the engraving style.
"""

LASER_ENGRAVING_PROMPT = """Convert the input image into a laser-engraving-ready illustration.

Style:

• Clean black-and-white line art

• Architectural ink sketch / engraving style

• Thin, consistent vector-like outlines

• No color, no grayscale shading, no gradients

• White background only

Details:

• Preserve all major edges, contours, and structural details

• Use minimal cross-hatching only where necessary for depth

• Emphasize outlines over texture

• Simplify complex textures into clean lines

Technical constraints:

• High contrast (pure black lines on pure white)

• No shadows, no soft shading, no fills

• No background noise or artifacts

• Suitable for CNC / laser engraving on wood or acrylic

Final look:

• Hand-drawn architectural engraving

• Etched illustration aesthetic

• Similar to traditional woodcut or pen-and-ink engraving
"""
